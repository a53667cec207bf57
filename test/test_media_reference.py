from urllib.parse import quote

import pytest

from storage.media_reference import (
    ReferenceKind,
    canonical_key,
    embed_url,
    is_local_path,
    normalize_reference,
)


@pytest.mark.parametrize("key", [
    "uploads/books/covers/a.png",
    "uploads/audio/1767922036492-xei7zw-khutba.mp3",
    "uploads/logo/1767922036492-xei7zw-Screenshot_2026-01-08_071838-Photoroom.png",
])
def test_canonical_key_is_returned_unchanged(key):
    result = normalize_reference(key)
    assert result.kind is ReferenceKind.CANONICAL
    assert result.value == key
    # idempotent
    assert normalize_reference(result.value) == result


def test_repairs_persisted_download_endpoint_url():
    result = normalize_reference("https://host/api/download?key=uploads%2Fbooks%2Fcovers%2Fa.png")
    assert result.kind is ReferenceKind.CANONICAL
    assert result.value == "uploads/books/covers/a.png"


def test_repairs_relative_download_endpoint_url_with_extra_params():
    result = normalize_reference("/api/download?format=json&key=uploads%2Fimages%2Fx.jpg")
    assert result.is_canonical
    assert result.value == "uploads/images/x.jpg"


def test_download_endpoint_url_without_key_value_passes_through():
    reference = "https://host/api/download?key="
    result = normalize_reference(reference)
    assert result.kind is ReferenceKind.PASSTHROUGH
    assert result.value == reference


def test_endpoint_url_wrapping_native_url_reduces_to_bare_key():
    nested = "https://site.example/api/download?key=https%3A%2F%2Ff001.backblazeb2.com%2Ffile%2Fb%2Fuploads%2Fa.png"
    result = normalize_reference(nested)
    assert result.kind is ReferenceKind.CANONICAL
    assert result.value == "uploads/a.png"
    assert normalize_reference(result.value) == result


def test_endpoint_url_wrapped_twice_reduces_to_bare_key():
    inner = "/api/download?key=uploads%2Fimages%2Fx.jpg"
    outer = "/api/download?key=" + quote(inner, safe="")
    assert canonical_key(outer) == "uploads/images/x.jpg"


def test_endpoint_url_wrapping_external_url_passes_the_external_url_through():
    result = normalize_reference("/api/download?key=https%3A%2F%2Fyoutube.com%2Fwatch%3Fv%3Dxyz")
    assert result.is_passthrough
    assert result.value == "https://youtube.com/watch?v=xyz"


def test_endpoint_url_wrapping_unrecognized_value_is_absent():
    assert normalize_reference("/api/download?key=test-image.jpg").is_absent


def test_repairs_native_object_store_url():
    result = normalize_reference("https://f001.backblazeb2.com/file/bucket/uploads/books/covers/a.png")
    assert result.is_canonical
    assert result.value == "uploads/books/covers/a.png"


def test_repairs_expired_native_signed_url():
    reference = (
        "https://s3.us-west-004.backblazeb2.com/media-bucket/uploads/audio/x%20y.mp3"
        "?X-Amz-Algorithm=AWS4-HMAC-SHA256&X-Amz-Expires=3600&X-Amz-Signature=abc"
    )
    assert canonical_key(reference) == "uploads/audio/x y.mp3"


def test_native_url_without_uploads_segment_passes_through():
    reference = "https://f001.backblazeb2.com/file/bucket/other/a.png"
    result = normalize_reference(reference)
    assert result.is_passthrough
    assert result.value == reference


def test_custom_native_host():
    reference = "https://minio.internal:9000/media/uploads/images/a.png"
    assert normalize_reference(reference).is_passthrough
    result = normalize_reference(reference, native_hosts=["minio.internal"])
    assert result.value == "uploads/images/a.png"


@pytest.mark.parametrize("reference", [
    "https://youtube.com/watch?v=xyz",
    "https://www.youtube.com/embed/xyz",
    "http://cdn.example.org/uploads/image.png",
])
def test_external_urls_pass_through(reference):
    result = normalize_reference(reference)
    assert result.kind is ReferenceKind.PASSTHROUGH
    assert result.value == reference


def test_local_static_path_passes_through():
    result = normalize_reference("/images/logo.png")
    assert result.is_passthrough
    assert result.value == "/images/logo.png"


@pytest.mark.parametrize("reference", ["//evil.example/phish", "/\\evil.example/phish"])
def test_protocol_relative_url_is_not_a_local_path(reference):
    assert not is_local_path(reference)
    assert normalize_reference(reference).is_absent


@pytest.mark.parametrize("reference", [None, "", "   ", "test-image.jpg", "books/a.png", "/uploads/a.png"])
def test_unrecognized_or_empty_is_absent(reference):
    assert normalize_reference(reference).kind is ReferenceKind.ABSENT


def test_unparseable_url_does_not_raise():
    reference = "https://[broken/api/download?key=uploads%2Fa.png"
    result = normalize_reference(reference)
    assert result.kind in (ReferenceKind.PASSTHROUGH, ReferenceKind.CANONICAL)


def test_download_rule_takes_precedence_over_native_host():
    reference = "https://f001.backblazeb2.com/api/download?key=uploads%2Fa.png"
    assert canonical_key(reference) == "uploads/a.png"


def test_surrounding_whitespace_is_ignored():
    assert canonical_key("  uploads/images/a.png\n") == "uploads/images/a.png"


def test_embed_url_routes_stored_objects_through_download_endpoint():
    assert embed_url("uploads/books/covers/a b.png") == "/api/download?key=uploads%2Fbooks%2Fcovers%2Fa%20b.png"
    assert embed_url("https://youtube.com/watch?v=xyz") == "https://youtube.com/watch?v=xyz"
    assert embed_url("/images/logo.png") == "/images/logo.png"
    assert embed_url(None) is None
    assert embed_url("nonsense") is None


def test_embed_url_repairs_legacy_reference():
    legacy = "https://site.example/api/download?key=uploads%2Flogo%2Fl.png"
    assert embed_url(legacy) == "/api/download?key=uploads%2Flogo%2Fl.png"
