"""auth/ -- Authentication core for tenant-auth: hashing, token issuance, AuthService.

Layer rule: auth/ imports only stdlib + third-party libraries, plus core/log.py.
It does NOT import from api/ or storage/. storage/ implements the contracts in
auth/ports.py; api/ and main.py import from auth/, not the other way around.
"""
