"""Testes da expansão de imagens embutidas nos campos de texto rico."""
from unittest.mock import MagicMock

import pytest

from ado_client.utils.html_images import embed_images, mime_type_from_header

ORG = "https://dev.azure.com/org/"


@pytest.fixture
def download(make_response):
    d = MagicMock()
    d.return_value = make_response(200, content=b"hello", headers={"Content-Type": "image/jpeg"})
    return d


def test_text_without_images_is_unchanged(download):
    assert embed_images("<div>sem imagens</div>", ORG, download) == "<div>sem imagens</div>"
    download.assert_not_called()


def test_replaces_src_with_data_uri(download):
    html = f'<div>a<img src="{ORG}proj/_apis/wit/attachments/1?fileName=a.jpg" alt="x">b</div>'

    out = embed_images(html, ORG, download)

    download.assert_called_once_with(f"{ORG}proj/_apis/wit/attachments/1?fileName=a.jpg")
    assert out == '<div>a<img src="data:image/jpeg;base64,aGVsbG8=" alt="x">b</div>'


def test_multiple_images(download):
    html = f'<img src="{ORG}a"><p>meio</p><img src="{ORG}b">'

    out = embed_images(html, ORG, download)

    assert download.call_count == 2
    assert out.count("data:image/jpeg;base64,aGVsbG8=") == 2
    assert "<p>meio</p>" in out
    assert ORG not in out


def test_images_from_other_hosts_are_kept(download):
    html = '<img src="https://example.com/logo.png">'

    assert embed_images(html, ORG, download) == html
    download.assert_not_called()


def test_malformed_segment_is_kept_and_others_processed(download):
    html = f'<img src="{ORG}good">texto<img src="{ORG}sem-aspa-de-fechamento'

    out = embed_images(html, ORG, download)

    download.assert_called_once_with(f"{ORG}good")
    assert out == f'<img src="data:image/jpeg;base64,aGVsbG8=">texto<img src="{ORG}sem-aspa-de-fechamento'


@pytest.mark.parametrize(
    "header,expected",
    [("image/png", "image/png"), ("image/gif; charset=binary", "image/gif"), (None, "image"), ("", "image")],
)
def test_mime_type_from_header(header, expected):
    assert mime_type_from_header(header) == expected


def test_missing_content_type_uses_image(make_response):
    download = MagicMock(return_value=make_response(200, content=b"x"))

    out = embed_images(f'<img src="{ORG}a">', ORG, download)

    assert out == '<img src="data:image;base64,eA==">'
