# /tests/test_files_api.py

import io
import zipfile

from app.models.file_model import UploadRequest, FileEntry
from app.services import storage_service


def test_single_upload_adds_markdown_extension(client, auth_headers):
    response = client.post("/api/files/upload", json={"content": "# Notes", "filename": "notes"}, headers=auth_headers)

    assert response.status_code == 200
    body = response.json()
    assert body["type"] == "single"
    assert body["filename"] == "notes.md"
    assert body["size"] == len("# Notes")
    assert body["downloadUrl"] == body["url"] + "?download=1"
    assert "fileCount" not in body


def test_uploaded_file_is_served_publicly(client, auth_headers):
    url = client.post("/api/files/upload", json={"content": "hello", "filename": "a.md"}, headers=auth_headers).json()["url"]

    response = client.get(url.replace("http://testserver", ""))

    assert response.status_code == 200
    assert response.text == "hello"
    assert response.headers["content-type"].startswith("text/markdown")


def test_download_flag_sets_attachment_disposition(client, auth_headers):
    download_url = client.post(
        "/api/files/upload", json={"content": "hello", "filename": "a.md"}, headers=auth_headers
    ).json()["downloadUrl"]

    response = client.get(download_url.replace("http://testserver", ""))

    assert "attachment" in response.headers["content-disposition"]
    assert "a.md" in response.headers["content-disposition"]


def test_batch_upload_builds_a_zip(client, auth_headers, blob_store, user):
    files = [{"content": "one", "filename": "first"}, {"content": "two", "filename": "second.md"}]

    body = client.post("/api/files/upload", json={"files": files}, headers=auth_headers).json()

    assert body["type"] == "zip"
    assert body["fileCount"] == 2
    assert body["filename"].startswith("chatbot-files-") and body["filename"].endswith(".zip")

    (blob,) = blob_store.list(str(user.id), suffix=".zip")
    path = blob_store.resolve(str(user.id), blob.blob_name)
    with zipfile.ZipFile(io.BytesIO(path.read_bytes())) as archive:
        assert sorted(archive.namelist()) == ["first.md", "second.md"]
        assert archive.read("first.md") == b"one"


def test_upload_validation_messages(client, auth_headers):
    cases = [
        ({"filename": "x"}, "No content provided"),
        ({"content": "x"}, "No filename provided"),
        ({"files": []}, "No files provided"),
        ({"files": [{"content": "x"}]}, "Each file must have content and filename"),
    ]
    for payload, expected in cases:
        response = client.post("/api/files/upload", json=payload, headers=auth_headers)
        assert response.status_code == 400
        assert response.json() == {"error": expected}


def test_list_returns_only_the_callers_markdown(client, auth_headers, other_user):
    from conftest import auth_headers_for

    client.post("/api/files/upload", json={"content": "mine", "filename": "mine"}, headers=auth_headers)
    client.post("/api/files/upload", json={"files": [{"content": "z", "filename": "z"}]}, headers=auth_headers)
    client.post("/api/files/upload", json={"content": "theirs", "filename": "theirs"}, headers=auth_headers_for(other_user))

    files = client.get("/api/files/list", headers=auth_headers).json()["files"]

    assert [f["filename"] for f in files] == ["mine.md"]


def test_unknown_or_traversing_blob_is_not_found(client, tmp_path):
    (tmp_path / "secret.txt").write_text("TOP SECRET")

    assert client.get("/files/1/does-not-exist.md").status_code == 404
    assert client.get("/files/1/..%2F..%2Fetc%2Fpasswd").status_code == 404
    # The store root is tmp_path/blobs, so ".." as the owner points at tmp_path.
    response = client.get("/files/%2E%2E/secret.txt")
    assert response.status_code == 404
    assert "TOP SECRET" not in response.text


def test_store_resolve_rejects_paths_outside_owner(blob_store):
    blob = storage_service.store_markdown(blob_store, "7", "text", "doc")
    assert blob_store.resolve("7", blob.blob_name) is not None
    assert blob_store.resolve("7", "../8/" + blob.blob_name) is None
    assert blob_store.resolve("8", blob.blob_name) is None


def test_store_resolve_rejects_owner_outside_root(blob_store, tmp_path):
    (tmp_path / "secret.txt").write_text("TOP SECRET")
    storage_service.store_markdown(blob_store, "7", "text", "doc")

    assert blob_store.resolve("..", "secret.txt") is None
    assert blob_store.resolve(".", "7") is None
    assert blob_store.resolve("", "7") is None


def test_upload_files_service_prefers_batch_shape(blob_store):
    request = UploadRequest(content="ignored", filename="ignored", files=[FileEntry(content="a", filename="a")])
    result = storage_service.upload_files(blob_store, "1", request)
    assert result["type"] == "zip"
