import os

from conftest import JPEG_STUB
from toolkit import Tools
from toolkit.service.files import content_disposition, ensure_dir


def test_ensure_dir_twice(tmp_path):
    target = tmp_path / "testdir"
    ensure_dir(target)
    ensure_dir(target)
    assert target.is_dir()


def test_ensure_dir_creates_parents(tmp_path):
    target = tmp_path / "a" / "b" / "c"
    Tools.ensure_dir(str(target))
    assert target.is_dir()


def test_ensure_dir_leaves_existing_path_alone(tmp_path):
    existing = tmp_path / "file.txt"
    existing.write_text("keep me")
    ensure_dir(existing)
    assert existing.read_text() == "keep me"


def test_content_disposition_escapes_name():
    assert content_disposition("image.jpg") == 'attachment; filename="image.jpg"'
    assert content_disposition("my cat & me.jpg") == 'attachment; filename="my+cat+%26+me.jpg"'


def test_download_static_file(make_client):
    client = make_client()
    r = client.get("/download/cat.jpg")
    assert r.status_code == 200
    assert r.headers["content-disposition"] == 'attachment; filename="image.jpg"'
    assert r.headers["content-length"] == str(len(JPEG_STUB))
    assert r.content == JPEG_STUB


def test_download_display_name_is_escaped(make_client):
    client = make_client()
    r = client.get("/download/cat.jpg", params={"name": "my picture.jpg"})
    assert r.headers["content-disposition"] == 'attachment; filename="my+picture.jpg"'


def test_download_missing_file_is_404(make_client):
    client = make_client()
    r = client.get("/download/nope.jpg")
    assert r.status_code == 404


def test_download_directory_is_404(make_client, static_dir):
    os.mkdir(static_dir / "sub")
    client = make_client()
    r = client.get("/download/sub")
    assert r.status_code == 404


def test_download_range(make_client):
    client = make_client()
    r = client.get("/download/cat.jpg", headers={"Range": "bytes=0-3"})
    assert r.status_code == 206
    assert r.content == JPEG_STUB[:4]


def test_download_not_modified(make_client):
    client = make_client()
    first = client.get("/download/cat.jpg")
    r = client.get(
        "/download/cat.jpg",
        headers={"If-Modified-Since": first.headers["last-modified"]},
    )
    assert r.status_code == 304
    assert r.content == b""


def test_download_etag_match(make_client):
    client = make_client()
    first = client.get("/download/cat.jpg")
    r = client.get("/download/cat.jpg", headers={"If-None-Match": first.headers["etag"]})
    assert r.status_code == 304
