"""스토리지 서비스 - S3 또는 로컬 파일 저장.

Storage Service - S3 object storage or local file storage.
AWS 키가 비어있으면 자동으로 로컬 모드로 전환됩니다.
로컬 모드의 파일은 /api/files/local/{name} 으로 제공됩니다.
"""

import logging
import uuid
from pathlib import Path

from app.config import settings

logger = logging.getLogger(__name__)

# 로컬 업로드 디렉토리 - .env의 LOCAL_UPLOADS_DIR 또는 <project>/uploads/
_SERVER_ROOT: Path = Path(__file__).resolve().parent.parent.parent
UPLOADS_DIR: Path = Path(settings.LOCAL_UPLOADS_DIR) if settings.LOCAL_UPLOADS_DIR else _SERVER_ROOT / "uploads"

S3_PREFIX: str = "files/"


class StorageService:
    """파일 저장 서비스 - S3 또는 로컬 모드 자동 선택."""

    def __init__(self) -> None:
        self._client = None

    @property
    def is_local(self) -> bool:
        return not settings.AWS_ACCESS_KEY_ID or not settings.AWS_S3_BUCKET

    @property
    def client(self):
        if self.is_local:
            return None
        if self._client is None:
            import boto3
            from botocore.config import Config as BotoConfig

            self._client = boto3.client(
                "s3",
                region_name=settings.AWS_S3_REGION,
                aws_access_key_id=settings.AWS_ACCESS_KEY_ID,
                aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY,
                config=BotoConfig(signature_version="s3v4"),
            )
        return self._client

    def generate_name(self, filename: str) -> str:
        """<uuid>.<ext> 형식의 저장 이름을 생성합니다."""
        ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else "bin"
        return f"{uuid.uuid4().hex}.{ext}"

    def local_path(self, name: str) -> Path | None:
        """로컬 파일 경로. 업로드 디렉토리 밖을 가리키면 None."""
        path = (UPLOADS_DIR / name).resolve()
        if UPLOADS_DIR.resolve() not in path.parents:
            return None
        return path

    def public_url(self, name: str) -> str:
        if self.is_local:
            return f"{settings.PUBLIC_BASE_URL}/api/files/local/{name}"
        return f"https://{settings.AWS_S3_BUCKET}.s3.{settings.AWS_S3_REGION}.amazonaws.com/{S3_PREFIX}{name}"

    def upload(self, filename: str, content_type: str, data: bytes) -> tuple[str, str]:
        """파일을 저장하고 (저장 이름, URL)을 반환합니다."""
        name = self.generate_name(filename)

        if self.is_local:
            path = UPLOADS_DIR / name
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        else:
            self.client.put_object(
                Bucket=settings.AWS_S3_BUCKET,
                Key=f"{S3_PREFIX}{name}",
                Body=data,
                ContentType=content_type,
            )
        logger.info("File stored", extra={"storage_name": name, "size": len(data), "local": self.is_local})
        return name, self.public_url(name)

    def download_url(self, name: str, expires: int = 3600) -> str:
        """다운로드 URL - S3는 presigned GET URL, 로컬은 제공 URL."""
        if self.is_local:
            return self.public_url(name)
        return self.client.generate_presigned_url(
            "get_object",
            Params={"Bucket": settings.AWS_S3_BUCKET, "Key": f"{S3_PREFIX}{name}"},
            ExpiresIn=expires,
        )

    def delete(self, name: str) -> None:
        """저장된 파일을 삭제합니다. 없는 파일은 무시합니다."""
        if self.is_local:
            path = self.local_path(name)
            if path is not None:
                path.unlink(missing_ok=True)
            return
        self.client.delete_object(Bucket=settings.AWS_S3_BUCKET, Key=f"{S3_PREFIX}{name}")


storage_service: StorageService = StorageService()
