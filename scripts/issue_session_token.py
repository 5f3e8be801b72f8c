"""Issue a session token signed with the configured secret.

Useful for exercising the API locally without the auth provider.

Usage:
    python -m scripts.issue_session_token --user-id user-123
"""

import argparse
from datetime import timedelta

from chathub.core.config import settings
from chathub.services.session_service import sign_session_token


def main() -> None:
    parser = argparse.ArgumentParser(description="Issue a session token")
    parser.add_argument("--user-id", required=True, help="Session subject")
    parser.add_argument("--anonymous", action="store_true", help="Mark as guest session")
    parser.add_argument("--hours", type=int, default=1, help="Token lifetime in hours")
    args = parser.parse_args()

    token = sign_session_token(
        settings.auth,
        user_id=args.user_id,
        is_anonymous=args.anonymous,
        expires_in=timedelta(hours=args.hours),
    )
    print(token)


if __name__ == "__main__":
    main()
