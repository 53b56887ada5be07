import io, logging, time, uuid
from dataclasses import dataclass
from typing import Optional, Protocol, Sequence
from urllib.parse import quote

from minio import Minio
from minio.error import S3Error

from giftshop.core.errors import BucketNotFoundError, StorageError

logger = logging.getLogger(__name__)

PLACEHOLDER_URL = "/placeholder.svg?height=300&width=300"

@dataclass
class UploadedFile:
    name: str
    size_bytes: int
    mime_type: str
    data: bytes

class ObjectStorage(Protocol):
    def upload(self, bucket: str, path: str, data: bytes, content_type: str) -> str: ...
    def get_public_url(self, bucket: str, path: str) -> Optional[str]: ...

class MinioStorage:
    def __init__(self, endpoint: str, access_key: str, secret_key: str, secure: bool = False, public_base: str = ""):
        self.host = endpoint.replace('http://', '').replace('https://', '')
        self.access_key = access_key
        self.secret_key = secret_key
        self.secure = secure
        self.public_base = public_base.rstrip('/')

    def _client(self) -> Minio:
        return Minio(self.host, access_key=self.access_key, secret_key=self.secret_key, secure=self.secure)

    def upload(self, bucket: str, path: str, data: bytes, content_type: str) -> str:
        try:
            self._client().put_object(bucket, path, io.BytesIO(data), length=len(data), content_type=content_type)
        except S3Error as e:
            if e.code == "NoSuchBucket":
                raise BucketNotFoundError(bucket) from e
            raise StorageError(f"{e.code}: {e.message}") from e
        return path

    def get_public_url(self, bucket: str, path: str) -> Optional[str]:
        if not self.host:
            return None
        scheme = 'https' if self.secure else 'http'
        base = self.public_base or f"{scheme}://{self.host}"
        return f"{base}/{bucket}/{path}"

def placeholder_url(filename: str) -> str:
    return f"{PLACEHOLDER_URL}&text={quote(filename, safe='')}"

def generate_object_name(filename: str) -> str:
    """``<epoch-ms>-<random>.<ext>``, keeping the original extension."""
    ext = filename.rsplit('.', 1)[-1] if '.' in filename else ''
    stem = f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:13]}"
    return f"{stem}.{ext}" if ext else stem

class UploadService:
    """Best-effort upload. Every path ends in a usable URL; nothing is raised.

    Buckets are tried in order, moving on only when the current one does not
    exist. Any other storage failure, or a backend that cannot hand out a
    public URL, yields a placeholder that still names the original file.
    """

    def __init__(self, storage: Optional[ObjectStorage], buckets: Sequence[str], preview_mode: bool = False):
        self.storage = storage
        self.buckets = list(buckets)
        self.preview_mode = preview_mode

    def upload(self, file: UploadedFile) -> str:
        if self.preview_mode or self.storage is None:
            logger.info("Storage disabled, returning placeholder for %s", file.name)
            return placeholder_url(file.name)

        path = generate_object_name(file.name)
        try:
            bucket = self._put(path, file)
            url = self.storage.get_public_url(bucket, path)
        except BucketNotFoundError as e:
            logger.error("All storage attempts failed for %s: %s", file.name, e)
            return placeholder_url(file.name)
        except Exception:
            logger.exception("Error uploading %s", file.name)
            return placeholder_url(file.name)

        if not url:
            logger.warning("No public URL for %s/%s", bucket, path)
            return placeholder_url(file.name)
        return url

    def _put(self, path: str, file: UploadedFile) -> str:
        last: Optional[BucketNotFoundError] = None
        for bucket in self.buckets:
            try:
                self.storage.upload(bucket, path, file.data, file.mime_type)
                return bucket
            except BucketNotFoundError as e:
                logger.info("%s bucket not found, trying next bucket", bucket)
                last = e
        raise last or BucketNotFoundError("<none configured>")
