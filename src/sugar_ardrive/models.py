"""Typed ArDrive entities decoded from raw ardrive records."""

from __future__ import annotations

import mimetypes
from typing import Any, Iterable, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from sugar_ardrive.errors import RecordDecodeError


class ArDriveEntity(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)


class Drive(ArDriveEntity):
    drive_id: str = Field(alias="driveId")
    name: Optional[str] = None
    drive_privacy: Optional[str] = Field(default=None, alias="drivePrivacy")
    root_folder_id: Optional[str] = Field(default=None, alias="rootFolderId")
    metadata_tx_id: Optional[str] = Field(default=None, alias="metadataTxId")
    unix_time: Optional[int] = Field(default=None, alias="unixTime")
    app_name: Optional[str] = Field(default=None, alias="appName")
    app_version: Optional[str] = Field(default=None, alias="appVersion")
    arfs: Optional[str] = Field(default=None, alias="arFS")
    cipher: Optional[str] = None
    cipher_iv: Optional[str] = Field(default=None, alias="cipherIV")
    drive_auth_mode: Optional[str] = Field(default=None, alias="driveAuthMode")

    @property
    def is_private(self) -> bool:
        return self.drive_privacy == "private"


class FileEntry(ArDriveEntity):
    name: Optional[str] = None
    size: Optional[int] = None
    data_tx_id: Optional[str] = Field(default=None, alias="dataTxId")
    metadata_tx_id: Optional[str] = Field(default=None, alias="metadataTxId")
    parent_folder_id: Optional[str] = Field(default=None, alias="parentFolderId")
    last_modified_date: Optional[int] = Field(default=None, alias="lastModifiedDate")
    data_content_type: Optional[str] = Field(default=None, alias="dataContentType")
    file_id: Optional[str] = Field(default=None, alias="fileId")
    drive_id: Optional[str] = Field(default=None, alias="driveId")
    entity_type: Optional[str] = Field(default=None, alias="entityType")
    path: Optional[str] = None

    @property
    def content_type(self) -> Optional[str]:
        if self.data_content_type:
            return self.data_content_type
        if not self.name:
            return None
        guessed, _ = mimetypes.guess_type(self.name)
        return guessed

    @property
    def is_folder(self) -> bool:
        return self.entity_type == "folder"

    @property
    def is_resolvable(self) -> bool:
        return bool(self.data_tx_id or self.metadata_tx_id)


EntityT = TypeVar("EntityT", bound=ArDriveEntity)


def decode_record(record: Any, model: Type[EntityT], *, index: int = 0) -> EntityT:
    if not isinstance(record, dict):
        raise RecordDecodeError(
            f"record {index} is a {type(record).__name__}, expected an object for {model.__name__}",
            index=index,
            model=model.__name__,
        )
    try:
        return model.model_validate(record)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in exc.errors()
        )
        raise RecordDecodeError(
            f"record {index} is not a valid {model.__name__}: {problems}",
            index=index,
            model=model.__name__,
        ) from exc


def decode_records(records: Iterable[Any], model: Type[EntityT]) -> list[EntityT]:
    """Decode every record; the first bad record aborts the whole batch."""
    return [decode_record(record, model, index=index) for index, record in enumerate(records)]
