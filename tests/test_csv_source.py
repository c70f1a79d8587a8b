import pytest

from pipeline.errors import MalformedRecord
from sources.csv_source import CsvRecordSource, split_combined


def _write(tmp_path, text, name="requests.csv", encoding="utf-8"):
    path = tmp_path / name
    path.write_bytes(text.encode(encoding))
    return path


def test_plain_layout(tmp_path):
    path = _write(tmp_path, "Artist,Title\nDaft Punk,One More Time\nAdele,Hello\n")

    records = list(CsvRecordSource(path))

    assert [(r.artist, r.title, r.row) for r in records] == [
        ("Daft Punk", "One More Time", 1),
        ("Adele", "Hello", 2),
    ]
    assert not any(r.pinned for r in records)


def test_dynamodb_export_layout(tmp_path):
    path = _write(
        tmp_path,
        'music (S),song_id (S)\n'
        '"Queen - Bohemian Rhapsody",spotify:track:4u7EnebtmKWzUH433cf5Qv\n'
        '"Solo Title",\n',
    )

    first, second = CsvRecordSource(path)

    assert (first.artist, first.title) == ("Queen", "Bohemian Rhapsody")
    assert first.provider_track_id == "4u7EnebtmKWzUH433cf5Qv"
    assert (second.artist, second.title, second.provider_track_id) == ("", "Solo Title", None)


def test_spotify_urls_are_normalized(tmp_path):
    path = _write(
        tmp_path,
        "title,track_id\nX,https://open.spotify.com/track/4u7EnebtmKWzUH433cf5Qv?si=abc\n",
    )

    (record,) = CsvRecordSource(path)

    assert record.provider_track_id == "4u7EnebtmKWzUH433cf5Qv"


def test_bad_rows_become_malformed_records(tmp_path):
    path = _write(tmp_path, "artist,title\nA,Song\nB,\nC,Other,extra\n")

    records = list(CsvRecordSource(path))

    assert len(records) == 3
    assert not records[0].is_malformed
    assert records[1].malformed == "row has neither title nor track id"
    assert "extra field" in records[2].malformed
    assert records[2].row == 3


def test_source_is_restartable(tmp_path):
    path = _write(tmp_path, "title\nOne\nTwo\n")
    source = CsvRecordSource(path)

    assert list(source) == list(source)
    assert len(source.read_all()) == 2


def test_bom_and_header_case_are_ignored(tmp_path):
    path = _write(tmp_path, "\ufeffTITLE,ARTIST\nSong,Band\n")

    (record,) = CsvRecordSource(path)

    assert (record.title, record.artist) == ("Song", "Band")


def test_unusable_header_raises(tmp_path):
    path = _write(tmp_path, "foo,bar\n1,2\n")

    with pytest.raises(MalformedRecord):
        list(CsvRecordSource(path))


def test_split_combined():
    assert split_combined("A - B - C") == ("A", "B - C")
    assert split_combined("Just a title") == ("", "Just a title")
