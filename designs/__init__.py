"""designs/ -- Design submissions: domain models, persistence, attachments, export.

Layer rule: designs/ imports only stdlib, third-party libraries and core/.
It does NOT import from api/ or auth/.
"""
