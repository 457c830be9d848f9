"""
API request and response models for the design portal REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
designs/models.py, which own the internal domain representation. Route
handlers map between the two.
"""

from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from auth.models import User
from designs.models import Design, SideStone

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class RoleEnum(str, Enum):
    USER = "USER"
    ADMIN = "ADMIN"


class StyleEnum(str, Enum):
    ring = "Ring"
    pendant = "Pendant"
    stud = "Stud"
    bracelet = "Bracelet"
    necklace = "Necklace"


class KaratEnum(str, Enum):
    k14 = "14K"
    k18 = "18K"
    k22 = "22K"


class StoneTypeEnum(str, Enum):
    diamond = "Diamond"
    emerald = "Emerald"
    ruby = "Ruby"
    sapphire = "Sapphire"
    other = "Other"


class DiamondShapeEnum(str, Enum):
    round = "Round"
    oval = "Oval"
    princess = "Princess"
    cushion = "Cushion"
    emerald = "Emerald"


class ClarityEnum(str, Enum):
    IF = "IF"
    VVS1 = "VVS1"
    VVS2 = "VVS2"
    VS1 = "VS1"
    VS2 = "VS2"
    SI1 = "SI1"
    SI2 = "SI2"


class SideStoneShapeEnum(str, Enum):
    round = "Round"
    baguette = "Baguette"
    tapered = "Tapered"
    princess = "Princess"


class ExportFormatEnum(str, Enum):
    xlsx = "xlsx"
    csv = "csv"


# ---------------------------------------------------------------------------
# Errors and health
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str]


class MessageResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


class SignupRequest(BaseModel):
    """Request body for POST /api/v1/auth/signup."""

    model_config = ConfigDict(str_strip_whitespace=True)

    email: EmailStr
    name: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=128)
    phone: Optional[str] = Field(default=None, max_length=50)


class LoginRequest(BaseModel):
    """Request body for POST /api/v1/auth/login.

    email is a plain string here: a malformed address should fail like any
    other bad credential (401), not as a 422.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    email: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=128)


class UserSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    email: str
    name: str
    role: str

    @classmethod
    def from_user(cls, user: User) -> "UserSummary":
        return cls(id=user.id, email=user.email, name=user.name, role=user.role)


class AuthResponse(BaseModel):
    """Returned by signup and login. The client sends token as a Bearer header."""

    model_config = ConfigDict(frozen=True)

    user: UserSummary
    token: str
    token_type: str = "bearer"
    expires_in: int


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(min_length=1, max_length=128)
    new_password: str = Field(min_length=1, max_length=128)


class ResetRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    email: str = Field(min_length=1, max_length=255)


class ResetRequestResponse(BaseModel):
    """otp is only populated when the server runs with DEBUG=true."""

    model_config = ConfigDict(frozen=True)

    message: str
    otp: Optional[str] = None


class ResetPasswordRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    email: str = Field(min_length=1, max_length=255)
    otp: str = Field(min_length=1, max_length=12)
    new_password: str = Field(min_length=1, max_length=128)


# ---------------------------------------------------------------------------
# User management
# ---------------------------------------------------------------------------


class UserCreate(BaseModel):
    """Request body for POST /api/v1/users (admin)."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(min_length=1, max_length=128)
    phone: Optional[str] = Field(default=None, max_length=50)
    role: RoleEnum = RoleEnum.USER


class UserUpdate(BaseModel):
    """Request body for PUT /api/v1/users/{id}. Omitted fields are left unchanged."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(default=None, max_length=50)
    is_active: Optional[bool] = None
    role: Optional[RoleEnum] = None


class AdminPasswordReset(BaseModel):
    new_password: str = Field(min_length=1, max_length=128)


class UserResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    email: str
    name: str
    phone: Optional[str]
    role: str
    is_active: bool
    created_at: str
    updated_at: str

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            email=user.email,
            name=user.name,
            phone=user.phone,
            role=user.role,
            is_active=user.is_active,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


# ---------------------------------------------------------------------------
# Designs
# ---------------------------------------------------------------------------


class SideStoneModel(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(default_factory=lambda: uuid4().hex[:8], max_length=64)
    description: str = Field(default="", max_length=255)
    shape: Optional[SideStoneShapeEnum] = None
    weight: str = Field(default="", max_length=50)

    def to_domain(self) -> SideStone:
        return SideStone(
            id=self.id,
            description=self.description,
            shape=self.shape.value if self.shape else "",
            weight=self.weight,
        )


class DesignCreate(BaseModel):
    """Request body for POST /api/v1/designs.

    design_number may be omitted; the server then assigns DN-<epoch ms>.
    logo_data / media_data are base64 data URLs (see designs/files.py).
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    design_number: Optional[str] = Field(default=None, max_length=64)
    style: StyleEnum
    gold_karat: KaratEnum
    approx_gold_weight: str = Field(min_length=1, max_length=50)
    stone_type: StoneTypeEnum
    diamond_shape: DiamondShapeEnum
    carat_weight: str = Field(min_length=1, max_length=50)
    clarity: ClarityEnum
    side_stones: list[SideStoneModel] = Field(default_factory=list, max_length=20)
    marking: str = Field(default="", max_length=50)
    logo_file_name: Optional[str] = Field(default=None, max_length=255)
    logo_data: Optional[str] = None
    media_file_name: Optional[str] = Field(default=None, max_length=255)
    media_data: Optional[str] = None


class DesignUpdate(BaseModel):
    """Request body for PUT /api/v1/designs/{id}. Omitted fields are left unchanged."""

    model_config = ConfigDict(str_strip_whitespace=True)

    design_number: Optional[str] = Field(default=None, min_length=1, max_length=64)
    style: Optional[StyleEnum] = None
    gold_karat: Optional[KaratEnum] = None
    approx_gold_weight: Optional[str] = Field(default=None, min_length=1, max_length=50)
    stone_type: Optional[StoneTypeEnum] = None
    diamond_shape: Optional[DiamondShapeEnum] = None
    carat_weight: Optional[str] = Field(default=None, min_length=1, max_length=50)
    clarity: Optional[ClarityEnum] = None
    side_stones: Optional[list[SideStoneModel]] = Field(default=None, max_length=20)
    marking: Optional[str] = Field(default=None, max_length=50)
    logo_file_name: Optional[str] = Field(default=None, max_length=255)
    logo_data: Optional[str] = None
    media_file_name: Optional[str] = Field(default=None, max_length=255)
    media_data: Optional[str] = None


class DesignResponse(BaseModel):
    """A design without its attachment payloads.

    Attachments are fetched separately from /designs/{id}/files/{kind};
    has_logo / has_media say whether there is anything to fetch.
    """

    model_config = ConfigDict(frozen=True)

    id: int
    user_id: int
    design_number: str
    style: str
    gold_karat: str
    approx_gold_weight: str
    stone_type: str
    diamond_shape: str
    carat_weight: str
    clarity: str
    side_stones: list[SideStoneModel]
    marking: str
    logo_file_name: Optional[str]
    media_file_name: Optional[str]
    has_logo: bool
    has_media: bool
    created_at: str
    updated_at: str

    @classmethod
    def from_design(cls, design: Design) -> "DesignResponse":
        return cls(
            id=design.id,
            user_id=design.user_id,
            design_number=design.design_number,
            style=design.style,
            gold_karat=design.gold_karat,
            approx_gold_weight=design.approx_gold_weight,
            stone_type=design.stone_type,
            diamond_shape=design.diamond_shape,
            carat_weight=design.carat_weight,
            clarity=design.clarity,
            side_stones=[
                SideStoneModel(id=s.id, description=s.description, shape=s.shape or None, weight=s.weight)
                for s in design.side_stones
            ],
            marking=design.marking,
            logo_file_name=design.logo_file_name,
            media_file_name=design.media_file_name,
            has_logo=bool(design.logo_data),
            has_media=bool(design.media_data),
            created_at=design.created_at,
            updated_at=design.updated_at,
        )
