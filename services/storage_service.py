# services/storage_service.py
"""
Slip image storage.

Azure Blob Storage when AZURE_STORAGE_ACCOUNT/AZURE_STORAGE_KEY are set,
otherwise files under UPLOAD_DIR. Either way slips are read back through
read_slip so only the payment owner or an admin can fetch them.
"""
import os
import uuid
from dataclasses import dataclass

from azure.core.exceptions import ResourceNotFoundError

import azure_blob
from utils.errors import NotFoundError
from utils.logger import get_logger

logger = get_logger(__name__)

SLIP_CONTAINER = os.getenv("AZURE_SLIP_CONTAINER", "payment-slips")
UPLOAD_DIR = os.getenv("UPLOAD_DIR", os.path.join(os.path.dirname(os.path.dirname(__file__)), "uploads"))
LOCAL_URL_PREFIX = "/uploads/"

EXTENSIONS = {
     "image/jpeg": ".jpg",
     "image/jpg": ".jpg",
     "image/png": ".png",
     "image/gif": ".gif",
     "image/webp": ".webp",
}


@dataclass
class StoredFile:
     url: str
     size: int
     content_type: str


def store_slip(data: bytes, content_type: str, user_id: int) -> StoredFile:
     ext = EXTENSIONS.get(content_type, ".bin")

     if azure_blob.is_configured():
          url = azure_blob.upload_bytes(data, SLIP_CONTAINER, user_id, ext, content_type)
     else:
          folder = os.path.join(UPLOAD_DIR, "slips", str(user_id))
          os.makedirs(folder, exist_ok=True)
          filename = f"{uuid.uuid4()}{ext}"
          with open(os.path.join(folder, filename), "wb") as f:
               f.write(data)
          url = f"{LOCAL_URL_PREFIX}slips/{user_id}/{filename}"

     logger.info("slip_stored", user_id=user_id, size=len(data), content_type=content_type)
     return StoredFile(url=url, size=len(data), content_type=content_type)


def read_slip(url: str) -> bytes:
     """
     Load a stored slip by the URL ``store_slip`` returned.

     Raises:
          NotFoundError: The file is gone or the URL points outside the upload folder
     """
     if url.startswith(LOCAL_URL_PREFIX):
          root = os.path.realpath(UPLOAD_DIR)
          path = os.path.realpath(os.path.join(root, url[len(LOCAL_URL_PREFIX):]))
          if os.path.commonpath([root, path]) != root or not os.path.isfile(path):
               raise NotFoundError("ไม่พบไฟล์สลิป")
          with open(path, "rb") as f:
               return f.read()

     if not azure_blob.is_configured():
          raise NotFoundError("ไม่พบไฟล์สลิป")
     try:
          return azure_blob.download_bytes(url)
     except ResourceNotFoundError:
          raise NotFoundError("ไม่พบไฟล์สลิป")
