from azure.storage.blob import BlobServiceClient, ContentSettings
import os
import uuid
from urllib.parse import urlparse

account = os.getenv("AZURE_STORAGE_ACCOUNT")
key = os.getenv("AZURE_STORAGE_KEY")

_blob_service = None


def is_configured() -> bool:
     return bool(account and key)


def get_blob_service() -> BlobServiceClient:
     """Client is built on first use so importing this module needs no credentials."""
     global _blob_service
     if _blob_service is None:
          _blob_service = BlobServiceClient.from_connection_string(
               f"DefaultEndpointsProtocol=https;"
               f"AccountName={account};"
               f"AccountKey={key};"
               f"EndpointSuffix=core.windows.net"
          )
     return _blob_service


def upload_bytes(data: bytes, container: str, user_id: str | int, ext: str, content_type: str) -> str:
     filename = f"{user_id}/{uuid.uuid4()}{ext}"
     blob_client = get_blob_service().get_blob_client(container=container, blob=filename)
     blob_client.upload_blob(data, overwrite=True, content_settings=ContentSettings(content_type=content_type))
     return f"https://{account}.blob.core.windows.net/{container}/{filename}"



def download_bytes(blob_url: str) -> bytes:
     """Reads a blob back using the full URL returned by upload_bytes."""
     container, _, blob_name = urlparse(blob_url).path.lstrip("/").partition("/")
     blob_client = get_blob_service().get_blob_client(container=container, blob=blob_name)
     return blob_client.download_blob().readall()
