"""存储位置解析：分片目录、文件名模板与各片段配置形态。"""

import pytest
from sqlalchemy import Integer
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from app.packages.upload.core.constants import UNSAFE_FILENAME_CHARS
from app.packages.upload.core.enums import UploadSourceKind
from app.packages.upload.services.intake import UploadSource
from app.packages.upload.services.placement import (
    PlacementPolicy,
    Segment,
    record_identifier,
    resolve_folder,
    resolve_link,
)
from app.packages.upload.utils.path_utils import (
    camel_to_id,
    join_link,
    leading_int,
    normalize_link,
    sanitize_filename,
    shard_folder,
)


class BlogPost:
    def __init__(self, id):
        self.id = id


class _LocalBase(DeclarativeBase):
    pass


class Pair(_LocalBase):
    __tablename__ = "pairs"

    left: Mapped[int] = mapped_column(Integer, primary_key=True)
    right: Mapped[int] = mapped_column(Integer, primary_key=True)


def _source(name: str = "Photo.JPG", token: str = "abc123") -> UploadSource:
    return UploadSource(kind=UploadSourceKind.MULTIPART, name=name, token=token)


def test_shard_folder_levels():
    assert shard_folder(0) == "0/0/0"
    assert shard_folder(1) == "0/0/0"
    assert shard_folder(499) == "0/0/0"
    assert shard_folder(500) == "0/0/1"
    assert shard_folder(249_999) == "0/0/499"
    assert shard_folder(250_000) == "0/1/0"
    assert shard_folder(125_000_000) == "1/0/0"
    assert shard_folder(125_250_501) == "1/1/1"


def test_leading_int_and_names():
    assert leading_int("42_7") == 42
    assert leading_int("abc") == 0
    assert leading_int(None) == 0
    assert camel_to_id("BlogPost") == "blog-post"
    assert camel_to_id("HTTPRequestLog") == "http-request-log"
    assert sanitize_filename("my file?#.jpg") == "my-file--.jpg"


def test_shard_components_stay_in_range():
    for n in list(range(0, 2_000_000, 997)) + [124_999_999, 125_000_000, 374_999_999, 10**12 + 7]:
        c, a, b = (int(part) for part in shard_folder(n).split("/"))
        assert 0 <= a < 500
        assert 0 <= b < 500
        assert c == n // 125_000_000
        assert c * 125_000_000 + a * 250_000 + b * 500 <= n < c * 125_000_000 + a * 250_000 + (b + 1) * 500


@pytest.mark.parametrize(
    "name",
    [
        "plain.txt",
        " \"'&/\\?#",
        "my \"quoted\" & 'odd'/name\\with?all#chars.jpg",
        "--already-clean--.png",
        "",
    ],
)
def test_sanitize_filename_is_idempotent(name):
    once = sanitize_filename(name)
    assert sanitize_filename(once) == once
    assert not any(ch in once for ch in UNSAFE_FILENAME_CHARS)


def test_links_are_relative_and_cannot_escape():
    assert join_link("a/", None, "", "/b", "c.txt") == "a/b/c.txt"
    assert normalize_link("/../../etc/passwd") == "etc/passwd"
    assert normalize_link("  ") == ""


def test_default_policy():
    link = resolve_link(BlogPost(42), "image", _source(), PlacementPolicy())
    assert link == "blog-post/0/0/0/image/42_abc123.jpg"


def test_resolve_link_is_deterministic():
    owner, file, policy = BlogPost(1_000), _source(), PlacementPolicy()
    assert resolve_link(owner, "image", file, policy) == resolve_link(owner, "image", file, policy)
    assert resolve_folder(owner, "image", file, policy) == "blog-post/0/0/2/image"


def test_disabled_segments_keep_sanitized_original_name():
    policy = PlacementPolicy.build(
        model_folder=False,
        shard_folder=False,
        attribute_folder=False,
        name_template=False,
    )
    assert resolve_link(BlogPost(3), "file", _source("my report.pdf"), policy) == "my-report.pdf"


def test_literal_and_custom_segments():
    policy = PlacementPolicy.build(
        model_folder="media",
        shard_folder=Segment.custom(lambda owner, attribute, file: f"p{owner.id % 10}"),
        attribute_folder=Segment.literal("files"),
        name_template="{attribute}-{id}.{ext}",
    )
    assert resolve_link(BlogPost(27), "cover", _source("a.PNG"), policy) == "media/p7/files/cover-27.png"


def test_custom_name_template():
    policy = PlacementPolicy.build(name_template=lambda owner, attribute, file: f"{file.token}.bin")
    link = resolve_link(BlogPost(5), "file", _source(token="t1"), policy)
    assert link == "blog-post/0/0/0/file/t1.bin"


def test_composite_primary_key():
    pair = Pair(left=7, right=3)
    assert record_identifier(pair) == "7_3"
    link = resolve_link(pair, "file", _source("x.txt", token="k"), PlacementPolicy())
    assert link == "pair/0/0/0/file/7_3_k.txt"
