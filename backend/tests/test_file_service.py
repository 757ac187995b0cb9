"""
RR Nagar Backend — File Service Unit Tests
============================================

What:  FileService validation (extension, size, MIME), naming and storage.
How:   Temporary directories; libmagic is mocked so the suite does not need
       the system library.
"""

import os
import re
import sys
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

from marketplace.exceptions import FileStorageError, ValidationError
from marketplace.services.file_service import FileService


class TestExtensionValidation:

    def setup_method(self):
        self.service = FileService()

    @pytest.mark.parametrize("name", ["mango.jpg", "mango.jpeg", "mango.png", "mango.webp", "mango.gif"])
    def test_allowed_extensions(self, name):
        self.service.validate_extension(name)

    def test_extension_is_case_insensitive(self):
        assert self.service.validate_extension("Mango.JPG") == ".jpg"

    @pytest.mark.parametrize("name", ["menu.pdf", "script.exe", "noextension", "photo.bmp"])
    def test_rejected_extensions(self, name):
        with pytest.raises(ValidationError, match="not supported"):
            self.service.validate_extension(name)


class TestSizeValidation:

    def setup_method(self):
        self.service = FileService()

    def test_empty_file_rejected(self):
        with pytest.raises(ValidationError, match="empty"):
            self.service.validate_size(0, 0)

    def test_oversized_file_rejected(self):
        with patch("marketplace.services.file_service.settings") as mock_settings:
            mock_settings.max_file_size = 1024
            with pytest.raises(ValidationError, match="too large"):
                self.service.validate_size(None, 2048)

    def test_oversized_content_length_rejected(self):
        with patch("marketplace.services.file_service.settings") as mock_settings:
            mock_settings.max_file_size = 1024
            with pytest.raises(ValidationError, match="too large"):
                self.service.validate_size(4096, 10)

    def test_file_at_limit_accepted(self):
        with patch("marketplace.services.file_service.settings") as mock_settings:
            mock_settings.max_file_size = 1024
            self.service.validate_size(1024, 1024)


class TestMimeValidation:

    def setup_method(self):
        self.service = FileService()

    def _fake_magic(self, result=None, error=None):
        fake = SimpleNamespace(from_buffer=MagicMock(return_value=result, side_effect=error))
        return patch.dict(sys.modules, {"magic": fake})

    def test_image_mime_accepted(self, sample_image_bytes):
        with self._fake_magic("image/jpeg"):
            assert self.service.validate_mime_type(sample_image_bytes, "a.jpg") == "image/jpeg"

    def test_renamed_non_image_rejected(self):
        with self._fake_magic("application/pdf"):
            with pytest.raises(ValidationError, match="not supported"):
                self.service.validate_mime_type(b"%PDF-1.4", "fake.png")

    def test_libmagic_failure_is_storage_error(self):
        with self._fake_magic(error=RuntimeError("libmagic missing")):
            with pytest.raises(FileStorageError):
                self.service.validate_mime_type(b"data", "a.png")


class TestNaming:

    def test_sanitize_replaces_spaces_and_unsafe_chars(self):
        assert FileService.sanitize_filename("Fresh Mangoes (1).jpg") == "Fresh_Mangoes__1_.jpg"

    def test_sanitize_drops_directories(self):
        assert FileService.sanitize_filename("../../etc/passwd.png") == "passwd.png"
        assert FileService.sanitize_filename("C:\\Users\\me\\pic.png") == "pic.png"

    def test_storage_path_is_timestamped_under_products(self, temp_storage):
        service = FileService(storage_root=temp_storage)
        absolute, relative = service._generate_storage_path("Fresh Mango.jpg")
        assert re.fullmatch(r"products/\d{13}-Fresh_Mango\.jpg", relative)
        assert str(absolute).startswith(str(service.storage_root))

    def test_public_path_is_under_uploads(self):
        assert FileService.public_path("products/1-a.png") == "uploads/products/1-a.png"


class TestStorage:

    @pytest.mark.asyncio
    async def test_store_and_cleanup(self, temp_storage, sample_image_bytes):
        service = FileService(storage_root=temp_storage)
        absolute, relative = await service.store_file(sample_image_bytes, "mango.jpg")

        assert os.path.exists(absolute)
        with open(absolute, "rb") as f:
            assert f.read() == sample_image_bytes

        await service.cleanup_file(absolute)
        assert not os.path.exists(absolute)

    @pytest.mark.asyncio
    async def test_cleanup_of_missing_file_is_silent(self, temp_storage):
        service = FileService(storage_root=temp_storage)
        await service.cleanup_file(os.path.join(temp_storage, "gone.png"))

    @pytest.mark.asyncio
    async def test_validate_and_store_runs_all_checks(self, temp_storage, sample_image_bytes):
        service = FileService(storage_root=temp_storage)
        with patch.object(service, "validate_mime_type", return_value="image/jpeg") as mime:
            absolute, relative = await service.validate_and_store(
                "mango.jpg", sample_image_bytes, len(sample_image_bytes)
            )
        mime.assert_called_once()
        assert relative.startswith("products/")
        assert os.path.exists(absolute)

    @pytest.mark.asyncio
    async def test_validate_and_store_stops_on_bad_extension(self, temp_storage):
        service = FileService(storage_root=temp_storage)
        with pytest.raises(ValidationError):
            await service.validate_and_store("menu.pdf", b"data")
        assert os.listdir(temp_storage) == []
