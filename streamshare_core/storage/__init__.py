from streamshare_core.storage.paths import (
    ObjectPathParts,
    build_object_path,
    gs_uri,
    normalize_bucket_name,
    parse_object_path,
    rendition_file_name,
    staging_doc_id,
    strip_extension,
)

__all__ = [
    "ObjectPathParts",
    "build_object_path",
    "gs_uri",
    "normalize_bucket_name",
    "parse_object_path",
    "rendition_file_name",
    "staging_doc_id",
    "strip_extension",
]
