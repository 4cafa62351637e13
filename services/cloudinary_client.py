import logging
import os
from datetime import datetime, timezone

import cloudinary
import cloudinary.uploader

import config

logger = logging.getLogger(__name__)

cloudinary.config(
    cloud_name=config.CLOUDINARY_CLOUD_NAME,
    api_key=config.CLOUDINARY_API_KEY,
    api_secret=config.CLOUDINARY_API_SECRET,
    secure=True,
)

ALLOWED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".webp"}
MAX_FILE_SIZE = 5 * 1024 * 1024


class ImageUploadError(Exception):
    pass


def validate_image(filename: str, file) -> None:
    file_extension = os.path.splitext(filename or "")[1].lower()
    if file_extension not in ALLOWED_EXTENSIONS:
        raise ImageUploadError(
            f"Tipo de archivo no permitido: {filename}. Solo se aceptan JPG, PNG, GIF o WEBP"
        )

    file.seek(0, 2)
    file_size = file.tell()
    file.seek(0)
    if file_size > MAX_FILE_SIZE:
        raise ImageUploadError(f"Imagen {filename} excede el tamaño máximo de 5MB")


def upload_reward_image(file, filename: str) -> str:
    """Sube la imagen de una recompensa y devuelve su URL segura."""
    validate_image(filename, file)
    try:
        upload_result = cloudinary.uploader.upload(
            file,
            folder=config.CLOUDINARY_FOLDER,
            public_id=f"{datetime.now(timezone.utc).strftime('%Y%m%d_%H%M%S')}_{os.path.splitext(filename)[0]}",
            overwrite=True,
        )
    except Exception as e:
        logger.exception("Error subiendo imagen %s", filename)
        raise ImageUploadError(f"Error subiendo imagen {filename}: {e}") from e
    return upload_result["secure_url"]
