"""
Entry photo storage (Supabase Storage)

Photos are compressed to JPEG before upload so the results board and PDF
score sheets stay light.
"""
import io
import time
from typing import List, Optional, Dict, Any, Iterable, Tuple

from loguru import logger
from PIL import Image, ImageOps, UnidentifiedImageError

from topaz.config import photo_config
from .supabase_client import DatabaseError, get_supabase_client


QUALITY_STEP = 10
SHRINK_FACTOR = 0.8
MAX_SHRINK_ROUNDS = 5


class PhotoStorageError(DatabaseError):
    """Supabase Storage request failed"""


def _encode_jpeg(image: Image.Image, quality: int) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format="JPEG", quality=quality, optimize=True)
    return buffer.getvalue()


def compress_image(
    data: bytes,
    max_size_mb: float = None,
    max_width_or_height: int = None
) -> bytes:
    """
    Re-encode an image as JPEG within the size and dimension limits

    The image is EXIF-rotated, flattened to RGB and fit inside the max edge.
    JPEG quality steps down until the result fits; if the lowest quality is
    still too large the image is shrunk and the quality search repeats.

    Raises:
        ValueError: data is not a readable image
    """
    max_bytes = int((max_size_mb or photo_config.max_size_mb) * 1024 * 1024)
    max_edge = max_width_or_height or photo_config.max_width_or_height

    try:
        image = Image.open(io.BytesIO(data))
        image.load()
    except (UnidentifiedImageError, OSError) as e:
        raise ValueError(f"Not a valid image: {e}") from e

    image = ImageOps.exif_transpose(image)
    if image.mode != "RGB":
        image = image.convert("RGB")
    image.thumbnail((max_edge, max_edge), Image.LANCZOS)

    encoded = b""
    for _ in range(MAX_SHRINK_ROUNDS):
        quality = photo_config.initial_quality
        while quality >= photo_config.min_quality:
            encoded = _encode_jpeg(image, quality)
            if len(encoded) <= max_bytes:
                logger.debug(
                    f"Photo compressed: {len(data)} -> {len(encoded)} bytes "
                    f"({image.width}x{image.height}, q={quality})"
                )
                return encoded
            quality -= QUALITY_STEP

        width, height = image.size
        image = image.resize(
            (max(1, int(width * SHRINK_FACTOR)), max(1, int(height * SHRINK_FACTOR))),
            Image.LANCZOS
        )

    logger.warning(f"Photo still {len(encoded)} bytes after compression")
    return encoded


class PhotoStorage:
    """Entry photos in a public Supabase Storage bucket"""

    def __init__(self, client=None, bucket_name: str = None):
        self.client = client or get_supabase_client()
        self.bucket_name = bucket_name or photo_config.bucket_name

    @property
    def bucket(self):
        return self.client.storage.from_(self.bucket_name)

    @staticmethod
    def build_path(competition_id: str, entry_id: str, timestamp_ms: int = None) -> str:
        """{competition_id}/{entry_id}_{timestamp_ms}.jpg"""
        if timestamp_ms is None:
            timestamp_ms = int(time.time() * 1000)
        return f"{competition_id}/{entry_id}_{timestamp_ms}.jpg"

    def path_from_url(self, url: str) -> Optional[str]:
        """Storage path from a public URL (None for foreign URLs)"""
        if not url:
            return None
        marker = f"/{self.bucket_name}/"
        if marker not in url:
            return None
        return url.split(marker, 1)[1].split("?", 1)[0] or None

    async def upload_entry_photo(self, data: bytes, competition_id: str, entry_id: str) -> Dict[str, str]:
        """
        Compress and upload one entry photo

        Returns:
            {"url": public URL, "path": storage path}
        """
        compressed = compress_image(data)
        path = self.build_path(competition_id, entry_id)

        try:
            self.bucket.upload(
                path,
                compressed,
                {
                    "content-type": "image/jpeg",
                    "cache-control": photo_config.cache_control,
                    "upsert": "false",
                },
            )
            url = self.bucket.get_public_url(path)
        except Exception as e:
            logger.error(f"Photo upload failed ({path}): {e}")
            raise PhotoStorageError(f"Photo upload failed: {e}") from e

        logger.info(f"Photo uploaded: {path} ({len(compressed)} bytes)")
        return {"url": url, "path": path}

    async def delete_photo(self, path: str) -> None:
        await self.delete_photos([path])

    async def delete_photos(self, paths: Iterable[str]) -> int:
        paths = [p for p in paths if p]
        if not paths:
            return 0
        try:
            self.bucket.remove(paths)
        except Exception as e:
            logger.error(f"Photo delete failed: {e}")
            raise PhotoStorageError(f"Photo delete failed: {e}") from e

        logger.info(f"Photos deleted: {len(paths)}")
        return len(paths)

    async def bulk_upload_photos(
        self,
        files: List[Tuple[str, bytes]],
        competition_id: str
    ) -> Dict[str, Any]:
        """
        Upload several photos, one per entry

        Args:
            files: (entry_id, image bytes) pairs
        """
        results = {"success": [], "failed": []}

        for entry_id, data in files:
            try:
                uploaded = await self.upload_entry_photo(data, competition_id, entry_id)
                results["success"].append({"entry_id": entry_id, **uploaded})
            except (ValueError, PhotoStorageError) as e:
                results["failed"].append({"id": entry_id, "error": str(e)})

        results["message"] = f"{len(results['success'])} uploaded, {len(results['failed'])} failed"
        logger.info(f"Bulk photo upload: {results['message']}")
        return results

    async def list_competition_photos(self, competition_id: str) -> List[Dict[str, Any]]:
        try:
            files = self.bucket.list(competition_id) or []
        except Exception as e:
            logger.error(f"Photo listing failed: {e}")
            raise PhotoStorageError(f"Photo listing failed: {e}") from e

        photos = []
        for item in files:
            path = f"{competition_id}/{item.get('name')}"
            photos.append({
                "name": item.get("name"),
                "url": self.bucket.get_public_url(path),
                "path": path,
                "size": (item.get("metadata") or {}).get("size"),
                "created_at": item.get("created_at"),
            })
        return photos
