#!/usr/bin/env python3
"""
Issue a development access token for the socket service.

Usage:
  python scripts/issue_token.py --user-id USER [--role admin]
"""

import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.config.settings import get_settings
from src.domain.value_objects.role import Role
from src.infrastructure.auth.jwt_service import JWTService

if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Issue a development access token")
    parser.add_argument("--user-id", required=True, help="Token subject")
    parser.add_argument("--role", choices=[r.value for r in Role], default=Role.CUSTOMER.value)
    parser.add_argument("--name", help="Display name claim (optional)")
    args = parser.parse_args()

    settings = get_settings()
    service = JWTService(
        secret_key=settings.jwt_secret_key.get_secret_value(),
        algorithm=settings.jwt_algorithm,
        access_token_expires_minutes=settings.jwt_access_token_expires_minutes,
        issuer=settings.jwt_issuer,
        audience=settings.jwt_audience,
    )
    extra = {"name": args.name} if args.name else None
    print(service.create_access_token(subject=args.user_id, role=Role(args.role), extra_claims=extra))
