"""
Export artifacts: the CSV report and the per-record photo files.

Column order of the report is fixed:
    timestamp, type, fleet, collaborator, code, destination, material, observation

Free-text columns are always quoted, whatever their content.
"""

import base64
import binascii
import re
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime

from .access_record import AccessRecord, format_timestamp

REPORT_HEADERS = (
    "Data/Hora",
    "Tipo",
    "Frota",
    "Colaborador",
    "Código",
    "Destino",
    "Material",
    "Observação",
)

MATERIAL_YES = "SIM"
MATERIAL_NO = "NÃO"

CSV_MEDIA_TYPE = "text/csv"
DEFAULT_PHOTO_MEDIA_TYPE = "image/png"

_DATA_URL_RE = re.compile(r"^data:(?P<media>[\w.+-]+/[\w.+-]+)?(?P<params>(;[^;,]*)*?);base64,")
_NON_ALNUM_RE = re.compile(r"[\W_]+")

_EXTENSIONS = {
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/webp": "webp",
    "image/gif": "gif",
}


class PhotoDecodeError(ValueError):
    """Raised when a photo payload is not valid base64."""

    pass


@dataclass(frozen=True)
class Artifact:
    """A single deliverable output unit: the report or one photo."""

    file_name: str
    content: bytes
    media_type: str


def quote_field(value: str) -> str:
    """Quote a free-text field, doubling embedded quotes."""
    return '"' + value.replace('"', '""') + '"'


def format_local_time(value: datetime, fmt: str) -> str:
    """Render a timestamp in the machine's local time zone."""
    return value.astimezone().strftime(fmt)


def build_report_row(record: AccessRecord, timestamp_format: str) -> list[str]:
    return [
        format_local_time(record.timestamp, timestamp_format),
        record.type.value,
        quote_field(record.fleet_number),
        quote_field(record.collaborator_name),
        quote_field(record.collaborator_code),
        quote_field(record.destination),
        MATERIAL_YES if record.material_exit else MATERIAL_NO,
        quote_field(record.observation),
    ]


def build_report_csv(records: Sequence[AccessRecord], timestamp_format: str) -> str:
    """Build the CSV report in record order, header first."""
    lines = [",".join(REPORT_HEADERS)]
    for record in records:
        lines.append(",".join(build_report_row(record, timestamp_format)))
    return "\n".join(lines)


def report_file_name(prefix: str, export_time: datetime) -> str:
    """Report name embeds the export date, e.g. UAG_RELATORIO_2024-11-18.csv."""
    return f"{prefix}_{format_timestamp(export_time)[:10]}.csv"


def build_report_artifact(
    records: Sequence[AccessRecord],
    prefix: str,
    export_time: datetime,
    timestamp_format: str,
) -> Artifact:
    return Artifact(
        file_name=report_file_name(prefix, export_time),
        content=build_report_csv(records, timestamp_format).encode("utf-8"),
        media_type=CSV_MEDIA_TYPE,
    )


def safe_name_part(value: str) -> str:
    """Collapse every run of non-alphanumeric characters into one underscore."""
    return _NON_ALNUM_RE.sub("_", value)


def photo_media_type(payload: str) -> str:
    match = _DATA_URL_RE.match(payload)
    if match and match.group("media"):
        return match.group("media").lower()
    return DEFAULT_PHOTO_MEDIA_TYPE


def photo_file_name(record: AccessRecord, media_type: str = DEFAULT_PHOTO_MEDIA_TYPE) -> str:
    """Name a photo after its timestamp, collaborator and fleet number."""
    stamp = re.sub(r"[:.]", "-", format_timestamp(record.timestamp))
    extension = _EXTENSIONS.get(media_type, "png")
    return (
        f"{stamp}_{safe_name_part(record.collaborator_name)}"
        f"_{safe_name_part(record.fleet_number)}.{extension}"
    )


def unique_file_name(file_name: str, record_id: str, taken: set[str]) -> str:
    """Return file_name, or a variant tagged with the record id if already taken."""
    if file_name not in taken:
        return file_name
    stem, dot, extension = file_name.rpartition(".")
    tag = safe_name_part(record_id)[:8] or "photo"
    candidate = f"{stem}_{tag}{dot}{extension}"
    counter = 2
    while candidate in taken:
        candidate = f"{stem}_{tag}_{counter}{dot}{extension}"
        counter += 1
    return candidate


def decode_photo(payload: str) -> bytes:
    """Decode a data URL or bare base64 payload into raw image bytes."""
    match = _DATA_URL_RE.match(payload)
    encoded = payload[match.end():] if match else payload
    try:
        return base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as e:
        raise PhotoDecodeError(f"Photo payload is not valid base64: {e}") from e


def encode_photo(content: bytes, media_type: str = DEFAULT_PHOTO_MEDIA_TYPE) -> str:
    """Build the data URL stored on a record."""
    return f"data:{media_type};base64,{base64.b64encode(content).decode('ascii')}"


def build_photo_artifact(record: AccessRecord) -> Artifact:
    """Build the photo artifact of a record that carries a photo."""
    if not record.photo:
        raise ValueError(f"Record {record.id} has no photo")
    media_type = photo_media_type(record.photo)
    return Artifact(
        file_name=photo_file_name(record, media_type),
        content=decode_photo(record.photo),
        media_type=media_type,
    )
