import logging
import os
import uuid

from werkzeug.utils import secure_filename

from foodapp.errors import ValidationError

logger = logging.getLogger(__name__)


class ImageStore:
    """Stores uploaded images under the upload directory"""

    def __init__(self, upload_dir, allowed_extensions):
        self.upload_dir = upload_dir
        self.allowed_extensions = {ext.lower() for ext in allowed_extensions}

    def _extension(self, filename):
        name = secure_filename(filename or '')
        if '.' not in name:
            return None
        return name.rsplit('.', 1)[1].lower()

    def save(self, file_storage):
        """Persist the upload and return the stored file name"""
        if file_storage is None or not file_storage.filename:
            raise ValidationError('An image file is required', details=['file: Field required'])

        extension = self._extension(file_storage.filename)
        if extension not in self.allowed_extensions:
            allowed = ', '.join(sorted(self.allowed_extensions))
            raise ValidationError(
                'Unsupported image type',
                details=[f"file: extension must be one of {allowed}"],
            )

        filename = f"{uuid.uuid4().hex}.{extension}"
        os.makedirs(self.upload_dir, exist_ok=True)
        file_storage.save(os.path.join(self.upload_dir, filename))
        logger.info(f"Stored image {filename}")
        return filename
