import os
import boto3
from botocore.exceptions import BotoCoreError, ClientError
from pathlib import Path

from exceptions import StorageError
from logging_setup import get_logger

logger = get_logger("nova_finance.storage")

# Environment variables
S3_BUCKET = os.environ.get("S3_BUCKET")
AWS_REGION = os.environ.get("AWS_REGION", "us-east-1")
LOCAL_ROOT = Path(os.environ.get("REPORTS_DIR", "nova_finance_data"))

def get_s3_client():
    return boto3.client("s3", region_name=AWS_REGION)

def save_file(file_name: str, data: bytes | str, folder: str = "reports") -> str:
    """
    Saves a file to either local disk or S3 and returns where it went.
    """
    body = data.encode("utf-8") if isinstance(data, str) else data

    if S3_BUCKET:
        s3 = get_s3_client()
        key = f"{folder}/{file_name}"
        try:
            s3.put_object(Bucket=S3_BUCKET, Key=key, Body=body)
        except (BotoCoreError, ClientError) as e:
            logger.error("S3 upload of %s failed: %s", key, e)
            raise StorageError(f"S3 upload failed for {key}") from e
        logger.info("Saved s3://%s/%s", S3_BUCKET, key)
        return f"s3://{S3_BUCKET}/{key}"

    # Local fallback
    local_path = LOCAL_ROOT / folder / file_name
    local_path.parent.mkdir(parents=True, exist_ok=True)
    with open(local_path, "wb") as f:
        f.write(body)
    logger.info("Saved %s", local_path)
    return str(local_path)

def load_file(file_name: str, folder: str = "reports") -> bytes | None:
    """
    Loads a file from either local disk or S3; None when it does not exist.
    """
    if S3_BUCKET:
        s3 = get_s3_client()
        key = f"{folder}/{file_name}"
        try:
            obj = s3.get_object(Bucket=S3_BUCKET, Key=key)
            return obj["Body"].read()
        except s3.exceptions.NoSuchKey:
            return None
        except (BotoCoreError, ClientError) as e:
            logger.error("S3 download of %s failed: %s", key, e)
            raise StorageError(f"S3 download failed for {key}") from e

    # Local fallback
    local_path = LOCAL_ROOT / folder / file_name
    if local_path.exists():
        return local_path.read_bytes()
    return None

def list_files(folder: str = "reports") -> list[str]:
    """
    Lists files in a folder (Local or S3).
    """
    if S3_BUCKET:
        s3 = get_s3_client()
        try:
            response = s3.list_objects_v2(Bucket=S3_BUCKET, Prefix=f"{folder}/")
        except (BotoCoreError, ClientError) as e:
            logger.error("S3 listing of %s failed: %s", folder, e)
            raise StorageError(f"S3 listing failed for {folder}") from e
        if "Contents" in response:
            return [obj["Key"].split("/")[-1] for obj in response["Contents"]]
        return []

    local_path = LOCAL_ROOT / folder
    if local_path.exists():
        return sorted(f.name for f in local_path.glob("*") if f.is_file())
    return []
