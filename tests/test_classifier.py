import pytest

from conftest import make_tree
from mediacat.classifier import (
    Category,
    Classifier,
    MediaType,
    classify_extension,
    extension_of,
    reduce_counts,
    walk,
)


@pytest.mark.parametrize(
    "ext, expected",
    [
        ("mp4", MediaType.VIDEO),
        ("mov", MediaType.VIDEO),
        ("mkv", MediaType.VIDEO),
        ("jpg", MediaType.PICTURE),
        ("jpeg", MediaType.PICTURE),
        ("gif", MediaType.PICTURE),
        ("mp3", MediaType.AUDIO),
        ("m4b", MediaType.AUDIO),
        ("pdf", MediaType.BOOK),
    ],
)
def test_known_extensions(ext, expected):
    assert classify_extension(ext) is expected


@pytest.mark.parametrize("ext", ["", "txt", "nfo", "srt", "avi", "MP4"])
def test_unknown_extensions_are_text(ext):
    assert classify_extension(ext) is MediaType.TEXT


def test_extension_of():
    assert extension_of("Movie.Name.MKV") == "mkv"
    assert extension_of("README") == ""
    assert extension_of("archive.tar.gz") == "gz"
    assert extension_of("trailing.") == ""


def test_walk_recurses_into_subdirectories(tmp_path):
    folder = make_tree(
        tmp_path / "pack",
        ["a.mp4", "extras/b.mkv", "extras/deep/cover.jpg", "notes"],
    )
    tags = sorted(t.value for t in walk(folder))
    assert tags == ["picture", "text", "video", "video"]


def test_walk_single_file(tmp_path):
    file_path = tmp_path / "song.mp3"
    file_path.write_text("x")
    assert list(walk(file_path)) == [MediaType.AUDIO]


def test_walk_stops_at_max_depth(tmp_path, caplog):
    folder = make_tree(tmp_path / "pack", ["top.mp4", "a/b/c/deep.mp4"])
    tags = list(walk(folder, max_depth=2))
    assert tags == [MediaType.VIDEO]
    assert "nested deeper" in caplog.text


def test_walk_survives_symlink_cycle(tmp_path):
    folder = make_tree(tmp_path / "pack", ["a.mp4"])
    (folder / "loop").symlink_to(folder, target_is_directory=True)
    assert list(walk(folder)) == [MediaType.VIDEO]


@pytest.mark.parametrize(
    "videos, expected",
    [(1, Category.MOVIE), (3, Category.MOVIE), (4, Category.SHOW), (10, Category.SHOW)],
)
def test_show_threshold(tmp_path, videos, expected):
    folder = make_tree(tmp_path / "pack", [f"ep{i}.mp4" for i in range(videos)])
    assert Classifier(threshold=3).classify(folder) is expected


def test_custom_threshold(tmp_path):
    folder = make_tree(tmp_path / "pack", ["a.mp4", "b.mp4"])
    assert Classifier(threshold=1).classify(folder) is Category.SHOW
    assert Classifier(threshold=2).classify(folder) is Category.MOVIE


def test_audio_dominates_after_pictures_are_excluded(tmp_path):
    folder = make_tree(tmp_path / "book", ["01.mp3", "02.mp3", "cover.jpg"])
    assert Classifier().classify(folder) is Category.AUDIOBOOK


def test_pictures_do_not_outvote_media(tmp_path):
    folder = make_tree(
        tmp_path / "movie",
        ["film.mkv", "a.jpg", "b.jpg", "c.jpg", "info.nfo", "sub.srt"],
    )
    assert Classifier().classify(folder) is Category.MOVIE


def test_pdf_folder_is_book(tmp_path):
    folder = make_tree(tmp_path / "book", ["book.pdf", "cover.jpg"])
    assert Classifier().classify(folder) is Category.BOOK


def test_only_pictures_and_text_is_unclassified(tmp_path):
    folder = make_tree(tmp_path / "photos", ["a.jpg", "b.gif", "readme.txt"])
    assert Classifier().classify(folder) is None


def test_empty_folder_is_unclassified(tmp_path):
    folder = tmp_path / "empty"
    folder.mkdir()
    assert Classifier().classify(folder) is None


def test_tie_goes_to_earlier_media_type():
    counts = {MediaType.BOOK: 2, MediaType.AUDIO: 2, MediaType.VIDEO: 2}
    assert reduce_counts(counts) is Category.MOVIE
    counts = {MediaType.BOOK: 2, MediaType.AUDIO: 2}
    assert reduce_counts(counts) is Category.AUDIOBOOK


def test_reduce_counts_ignores_excluded_and_zero():
    assert reduce_counts({MediaType.PICTURE: 9, MediaType.TEXT: 9}) is None
    assert reduce_counts({MediaType.VIDEO: 0}) is None


def test_classification_is_repeatable(tmp_path):
    folder = make_tree(tmp_path / "pack", ["a.mp4", "b.mp3", "c.mp3"])
    classifier = Classifier()
    assert classifier.classify(folder) is classifier.classify(folder)


def test_category_bucket_names():
    assert Category.MOVIE.bucket == "movies"
    assert Category.AUDIOBOOK.bucket == "audiobooks"
    assert Category.SHOW.bucket == "shows"
