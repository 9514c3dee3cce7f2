"""
Authentication module for the health camp system.

This module provides authentication and authorization functionality including:
- User self-registration and phone-number login
- Admin and doctor login
- JWT credentials carried in an HTTP-only cookie or bearer header
- Credential revocation on logout and password change
- Role and permission gates
"""
