"""Create a video record and print a bearer token for its owner.

Usage: python -m scripts.seed_video "My title" [user-uuid]
"""

from __future__ import annotations

import sys
import uuid
from uuid import UUID

from src.tubely.auth.auth_service import AuthService
from src.tubely.config import load_config
from src.tubely.videos.video_repository import VideoRepository


def main(argv: list[str]) -> None:
    if not argv:
        raise SystemExit("usage: seed_video.py TITLE [USER_ID]")
    title = argv[0]
    user_id = UUID(argv[1]) if len(argv) > 1 else uuid.uuid4()

    config = load_config()
    video = VideoRepository(config.session_factory).create_video(user_id=user_id, title=title)
    token = AuthService(signing_key=config.jwt_secret).issue_token(user_id)

    print(f"video_id={video.id}")
    print(f"user_id={user_id}")
    print(f"token={token}")


if __name__ == "__main__":
    main(sys.argv[1:])
