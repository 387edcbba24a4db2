import sqlite3
from unittest import TestCase, mock

from dynarecord.core_services.Sqlite3Database import Sqlite3Database
from dynarecord.database.ActiveRecord import ActiveRecord, ActiveRecordMeta, find_by, save
from dynarecord.database.Exceptions import PersistenceError, RecordNotFound, UnknownPropertyError
from dynarecord.database.ModelDescriptor import construct
from dynarecord.database.active_record.utils.ModelCollection import ModelCollection
from dynarecord.database.active_record.utils.decorators import on


class Song(ActiveRecord):
    pass


class Tag(ActiveRecord):
    pass


class Tune(ActiveRecord):
    pass


class Album(ActiveRecord):
    announced = []

    @on("created")
    def announce(self):
        Album.announced.append(self.title)


SCHEMA = """
CREATE TABLE songs (id INTEGER PRIMARY KEY, name TEXT, album TEXT);
CREATE TABLE albums (id INTEGER PRIMARY KEY, title TEXT NOT NULL, year INTEGER);
CREATE TABLE playlists (id INTEGER PRIMARY KEY, title TEXT);
CREATE TABLE tags (id INTEGER PRIMARY KEY);
CREATE TABLE tunes (id INTEGER PRIMARY KEY, name TEXT, album TEXT);
"""


class TestSave(TestCase):
    def setUp(self):
        self.db = Sqlite3Database(":memory:")
        self.db.executescript(SCHEMA)
        ActiveRecord.bind(self.db)
        Album.announced.clear()

    def tearDown(self):
        self.db.close()

    def test_save_assigns_identity(self):
        song = construct(Song.describe(), {"name": "Hello", "album": "25"})
        self.assertIsNone(song.id)

        returned = save(song)

        self.assertEqual(returned, 1)
        self.assertEqual(song.id, 1)
        self.assertTrue(song.is_persisted())

    def test_round_trip(self):
        props = {"name": "Hello", "album": "25"}
        song_id = save(construct(Song.describe(), props))

        found = find_by(Song, "id", song_id)

        self.assertEqual(len(found), 1)
        self.assertEqual(found[0].id, song_id)
        self.assertEqual({k: found[0][k] for k in props}, props)

    def test_null_column_keeps_values_aligned(self):
        song = Song(name=None, album="25")
        song.save()

        row = self.db.query("SELECT id, name, album FROM songs WHERE id = ?", song.id)[0]
        self.assertIsNone(row["name"])
        self.assertEqual(row["album"], "25")

    def test_insert_passes_every_column_as_a_parameter(self):
        song = Song(name="Hello'); DROP TABLE songs; --", album=None)
        with mock.patch.object(self.db, "execute", wraps=self.db.execute) as execute:
            song.save()

        sql, params = execute.call_args.args
        self.assertEqual(sql, 'INSERT INTO "songs" ("name", "album") VALUES (?, ?)')
        self.assertEqual(params, ["Hello'); DROP TABLE songs; --", None])
        self.assertEqual(Song.find(song.id).name, "Hello'); DROP TABLE songs; --")

    def test_distinct_instances_get_distinct_increasing_ids(self):
        first = Song(name="One")
        second = Song(name="Two")
        first.save()
        second.save()
        self.assertNotEqual(first.id, second.id)
        self.assertGreater(second.id, first.id)

    def test_failed_insert_leaves_instance_transient(self):
        album = Album(year=2015)
        with self.assertRaises(PersistenceError) as ctx:
            album.save()

        self.assertIsNone(album.id)
        self.assertFalse(album.is_persisted())
        self.assertIsInstance(ctx.exception.engine_error, sqlite3.IntegrityError)
        self.assertIn("NOT NULL", str(ctx.exception))
        self.assertEqual(self.db.query("SELECT COUNT(*) AS n FROM albums")[0]["n"], 0)

    def test_saving_a_persisted_instance_updates_it(self):
        song = Song.create(name="Hello", album="25")
        song_id = song.id

        song.album = "25 (Deluxe)"
        self.assertEqual(song.save(), song_id)

        rows = self.db.query("SELECT * FROM songs")
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0]["album"], "25 (Deluxe)")

    def test_updating_a_vanished_row_raises(self):
        song = Song.create(name="Hello")
        self.db.execute("DELETE FROM songs WHERE id = ?", song.id)
        song.name = "Goodbye"
        with self.assertRaises(RecordNotFound):
            song.save()

    def test_identity_only_table_checks_the_row_still_exists(self):
        tag = Tag.create()
        self.assertEqual(tag.save(), tag.id)

        self.db.execute("DELETE FROM tags WHERE id = ?", tag.id)
        with self.assertRaises(RecordNotFound):
            tag.save()

    def test_mutation_is_not_synced_until_save(self):
        song = Song.create(name="Hello", album="25")
        song.album = "21"
        self.assertEqual(Song.find(song.id).album, "25")

    def test_lifecycle_listeners(self):
        Album.create(title="25", year=2015)
        Album.create(title="21", year=2011)
        self.assertEqual(Album.announced, ["25", "21"])

    def test_failing_listener_does_not_abort_save(self):
        def broken(song):
            raise RuntimeError("boom")

        Song.on("saved", broken)
        try:
            with self.assertLogs("orm.model", level="ERROR"):
                song = Song.create(name="Hello")
            self.assertIsNotNone(song.id)
        finally:
            Song.forget_listeners()


class TestFindBy(TestCase):
    def setUp(self):
        self.db = Sqlite3Database(":memory:")
        self.db.executescript(SCHEMA)
        ActiveRecord.bind(self.db)
        Song.create(name="Hello", album="25")
        Song.create(name="Hello", album="Single")
        Song.create(name="Skyfall", album=None)

    def tearDown(self):
        self.db.close()

    def test_matches_are_persisted_instances(self):
        found = find_by(Song, "name", "Skyfall")
        self.assertIsInstance(found, ModelCollection)
        self.assertEqual(len(found), 1)
        self.assertIsInstance(found[0], Song)
        self.assertEqual(found[0].id, 3)
        self.assertTrue(found[0].is_persisted())

    def test_song_scenario(self):
        found = Song.find_by("name", "Hello")
        self.assertEqual([s.album for s in found], ["25", "Single"])

    def test_accepts_a_class_name(self):
        found = find_by("Song", "album", "25")
        self.assertEqual(found.pluck("name"), ["Hello"])

    def test_no_match_is_an_empty_collection(self):
        self.assertEqual(find_by(Song, "name", "Nope"), [])

    def test_none_matches_null(self):
        found = find_by(Song, "album", None)
        self.assertEqual(found.pluck("name"), ["Skyfall"])

    def test_unknown_property_is_rejected_before_querying(self):
        Song.describe()
        with mock.patch.object(self.db, "query") as query:
            with self.assertRaises(UnknownPropertyError):
                find_by(Song, "name; DROP TABLE songs", "x")
            query.assert_not_called()

    def test_value_is_bound_not_interpolated(self):
        self.assertEqual(find_by(Song, "name", "x' OR '1'='1"), [])

    def test_dynamic_finder(self):
        self.assertEqual(len(Song.find_by_name("Hello")), 2)
        with self.assertRaises(AttributeError):
            Song.no_such_thing

    def test_unmapped_name_is_mapped_on_the_fly(self):
        self.db.execute("INSERT INTO playlists (title) VALUES (?)", "Road trip")
        found = find_by("Playlist", "title", "Road trip")
        self.assertEqual(len(found), 1)
        self.assertEqual(type(found[0]).__name__, "Playlist")
        self.assertEqual(found[0].id, 1)

    def test_find_and_all(self):
        self.assertEqual(Song.find(2).album, "Single")
        self.assertIsNone(Song.find(99))
        with self.assertRaises(RecordNotFound):
            Song.find_strict(99)
        self.assertEqual(Song.all().pluck("id"), [1, 2, 3])

    def test_to_list_dict(self):
        rows = Song.find_by("name", "Skyfall").to_list_dict()
        self.assertEqual(rows, [{"id": 3, "name": "Skyfall", "album": None}])


class TestSchemaChanges(TestCase):
    def setUp(self):
        self.db = Sqlite3Database(":memory:")
        self.db.executescript(SCHEMA)
        ActiveRecord.bind(self.db)
        Tune.create(name="a", album="x")

    def tearDown(self):
        self.db.close()

    def test_added_column_can_be_searched(self):
        self.db.executescript("ALTER TABLE tunes ADD COLUMN genre TEXT;")
        found = find_by(Tune, "genre", None)
        self.assertEqual(found.pluck("name"), ["a"])

    def test_dropped_column_is_left_out_of_inserts(self):
        self.db.executescript("""
            DROP TABLE tunes;
            CREATE TABLE tunes (id INTEGER PRIMARY KEY, name TEXT);
        """)
        tune = Tune(name="b")
        with mock.patch.object(self.db, "execute", wraps=self.db.execute) as execute:
            tune.save()

        self.assertEqual(execute.call_args.args[0], 'INSERT INTO "tunes" ("name") VALUES (?)')
        self.assertEqual(find_by(Tune, "name", "b").pluck("id"), [tune.id])


class TestModelRegistry(TestCase):
    def test_reusing_a_model_name_warns_and_replaces(self):
        try:
            first = ActiveRecordMeta("Cover", (ActiveRecord,), {"__module__": "catalogue.vinyl"})
            with self.assertLogs("orm.model", level="WARNING") as logs:
                second = ActiveRecordMeta("Cover", (ActiveRecord,), {"__module__": "catalogue.tape"})
            self.assertTrue(any("catalogue.vinyl.Cover" in line for line in logs.output))
            self.assertIsNot(first, second)
            self.assertIs(ActiveRecord.model_for("Cover"), second)
        finally:
            ActiveRecordMeta.__models__.pop("Cover", None)
