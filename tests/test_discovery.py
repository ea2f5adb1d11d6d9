"""
Tests for relationship discovery.

Tests foreign key matching, one-to-one detection, join tables, manual
foreign keys and the explorer.
"""

import re

import pytest
import yaml

from dynamic_entities.catalog import Database, ForeignKeyRegistry
from dynamic_entities.config import ExplorerConfig
from dynamic_entities.discovery import Explorer, RelationshipInferrer, explore, table_matcher
from dynamic_entities.exceptions import ModelNotFound
from dynamic_entities.metadata import SqlAlchemyIntrospector, StaticIntrospector
from dynamic_entities.models import IndexMetadata, RelationshipKind, TableSchema

BELONGS_TO = RelationshipKind.BELONGS_TO
HAS_MANY = RelationshipKind.HAS_MANY
HAS_ONE = RelationshipKind.HAS_ONE
HABTM = RelationshipKind.HAS_AND_BELONGS_TO_MANY


def summary(database, table_name):
    """(kind, name, target table) for every declaration of a model."""
    return [
        (r.kind, r.name, r.target.table_name)
        for r in database.get_model(table_name).relationships
    ]


def build(introspector, relationships=None, skip=()):
    database = Database(introspector)
    database.skip_tables(skip)
    database.create_models()
    inferrer = RelationshipInferrer(database)
    for table_name, fks in (relationships or {}).items():
        for fk, label in fks.items():
            inferrer.add_foreign_key(table_name, fk, label)
    declared = inferrer.build()
    return database, inferrer, declared


class TestRelationshipInferrer:
    """Tests for relationship inference on the reference schema."""

    @pytest.fixture
    def explored(self, introspector, relationships):
        return build(introspector, relationships)

    def test_belongs_to_and_has_many(self, explored):
        """Test employments.user_id -> belongs_to user / has_many employments."""
        database, _, _ = explored

        employment = database.get_model("employments")
        user_rel = employment.get_relationship("user")
        assert user_rel.kind == BELONGS_TO
        assert user_rel.target is database.get_model("users")
        assert user_rel.foreign_key == "user_id"
        assert user_rel.primary_key == "id"

        employments = database.get_model("users").get_relationship("employments")
        assert employments.kind == HAS_MANY
        assert employments.target is employment
        assert employments.foreign_key == "user_id"

    def test_user_relationships(self, explored):
        """Test unique indexes turn has_many into has_one."""
        database, _, _ = explored

        assert summary(database, "users") == [
            (HAS_MANY, "employments", "employments"),
            (HAS_ONE, "user_rollup", "user_rollups"),
            (HAS_ONE, "employee_user", "employee_users"),
        ]
        assert not database.get_model("users").has_relationship("user_rollups")

    def test_employment_relationships(self, explored):
        """Test declaration order follows column order."""
        database, _, _ = explored

        assert summary(database, "employments") == [
            (BELONGS_TO, "user", "users"),
            (BELONGS_TO, "job", "jobs"),
            (BELONGS_TO, "company", "companies"),
            (HAS_MANY, "stats_employment_durations", "stats_employment_durations"),
        ]

    def test_additional_foreign_key(self, explored):
        """Test a manual foreign key produces label-qualified names."""
        database, _, _ = explored

        assert summary(database, "companies") == [
            (BELONGS_TO, "website", "websites"),
            (BELONGS_TO, "company_website", "websites"),
            (HAS_MANY, "employments", "employments"),
            (HAS_MANY, "stats_company_employments", "stats_company_employments"),
        ]

        website = database.get_model("websites")
        assert summary(database, "websites") == [
            (HAS_MANY, "companies", "companies"),
            (HAS_MANY, "company_website_companies", "companies"),
            (HAS_MANY, "jobs_websites", "jobs_websites"),
            (HABTM, "jobs", "jobs"),
        ]
        assert website.get_relationship("company_website_companies").foreign_key == "company_website_id"

    def test_many_to_many(self, explored):
        """Test jobs_websites without a primary key gives symmetric habtm."""
        database, _, _ = explored

        websites = database.get_model("jobs").get_relationship("websites")
        jobs = database.get_model("websites").get_relationship("jobs")

        assert websites.kind == HABTM
        assert websites.target is database.get_model("websites")
        assert websites.join_table == "jobs_websites"
        assert websites.foreign_key is None
        assert jobs.kind == HABTM
        assert jobs.join_table == "jobs_websites"

    def test_self_reference_skipped(self, explored):
        """Test that a column matching its own table's key is ignored."""
        database, _, _ = explored

        employee_user = database.get_model("employee_users")
        assert summary(database, "employee_users") == [(BELONGS_TO, "employee_user", "users")]
        assert all(r.target is not employee_user for r in employee_user.relationships)

    def test_declared_count(self, explored):
        """Test that build returns every declaration it made."""
        database, _, declared = explored

        assert len(declared) == 24
        assert len(declared) == sum(len(m.relationships) for m in database.models)

    def test_unique_names(self, explored):
        """Test that no entity has two declarations with the same name."""
        database, _, _ = explored

        for model in database.models:
            names = [r.name for r in model.relationships]
            assert len(names) == len(set(names)), model.table_name

    def test_build_twice(self, explored):
        """Test that a second build re-derives the same graph."""
        database, inferrer, _ = explored
        before = {m.table_name: summary(database, m.table_name) for m in database.models}

        inferrer.build()

        after = {m.table_name: summary(database, m.table_name) for m in database.models}
        assert after == before

    def test_without_manual_foreign_keys(self, introspector):
        """Test the reference schema with conventions only."""
        database, _, _ = build(introspector)

        assert not database.get_model("companies").has_relationship("company_website")
        assert database.get_model("employee_users").relationships == []
        assert not database.get_model("users").has_relationship("employee_user")

    def test_skipped_tables(self, introspector, relationships):
        """Test that skipped tables take no part in inference."""
        database, _, _ = build(
            introspector, relationships, skip=[re.compile(r"^stats_"), "tmp_load_data_table"]
        )

        assert database.get_model("stats_employment_durations") is None
        assert not database.get_model("employments").has_relationship("stats_employment_durations")

    def test_add_foreign_key_unknown_table(self, introspector):
        """Test registering a key on an unknown table."""
        database = Database(introspector)
        database.create_models()
        inferrer = RelationshipInferrer(database)

        with pytest.raises(ModelNotFound):
            inferrer.add_foreign_key("missing", "missing_ref")

    def test_additional_key_with_default_label(self, introspector):
        """Test that an additional key without label still gets a qualified name."""
        database, _, _ = build(introspector, {"websites": {"company_website_id": None}})

        companies = database.get_model("companies")
        assert companies.get_relationship("website").foreign_key == "website_id"
        assert companies.get_relationship("website_via_company_website_id").foreign_key == "company_website_id"
        assert database.get_model("websites").has_relationship("websites_companies", HAS_MANY)

    def test_case_insensitive_columns(self):
        """Test that upper-case column names still match."""
        introspector = StaticIntrospector([
            TableSchema("users", ["ID", "NAME"], "ID"),
            TableSchema("posts", ["ID", "USER_ID"], "ID"),
        ])
        database, _, _ = build(introspector)

        post_user = database.get_model("posts").get_relationship("user")
        assert post_user.foreign_key == "USER_ID"
        assert post_user.primary_key == "ID"
        assert database.get_model("users").has_relationship("posts", HAS_MANY)

    def test_ambiguous_join_table_skipped(self):
        """Test join tables whose columns do not resolve to two models."""
        introspector = StaticIntrospector([
            TableSchema("users", ["id"], "id"),
            TableSchema("tags", ["id"], "id"),
            TableSchema("tags_owners", ["tag_id", "owner_id"]),
            TableSchema("friendships", ["user_id", "friend_user_id"]),
        ])
        database, _, declared = build(introspector, {"users": {"friend_user_id": "friend_user"}})

        assert [m.table_name for m in database.join_tables] == ["tags_owners", "friendships"]
        assert not any(r.kind == HABTM for r in declared)
        assert database.get_model("tags").has_relationship("tags_owners", HAS_MANY)

    def test_custom_id_suffix(self):
        """Test inference with a different foreign key suffix."""
        ForeignKeyRegistry.set_id_suffix("_ref")
        introspector = StaticIntrospector([
            TableSchema("games", ["id"], "id"),
            TableSchema("players", ["id"], "id"),
            TableSchema("scores", ["id", "game_ref", "game_id"], "id"),
            TableSchema("games_players", ["game_ref", "player_ref"]),
        ])
        database, _, _ = build(introspector)

        assert summary(database, "scores") == [(BELONGS_TO, "game", "games")]
        assert database.get_model("games").has_relationship("players", HABTM)
        assert database.get_model("players").has_relationship("games", HABTM)

    def test_singular_table_ending_in_s(self):
        """Test tables named with singular nouns ending in s."""
        introspector = StaticIntrospector([
            TableSchema("address", ["id", "street"], "id"),
            TableSchema("people", ["id", "address_id"], "id"),
        ])
        database, inferrer, _ = build(introspector)

        assert database.get_model("address").type_name == "Address"
        assert list(inferrer.foreign_keys("address").keys) == ["address_id"]
        assert summary(database, "people") == [(BELONGS_TO, "address", "address")]
        assert summary(database, "address") == [(HAS_MANY, "people", "people")]

    def test_additional_key_has_one_name(self):
        """Test that has_one names for unlabelled additional keys follow has_many."""
        introspector = StaticIntrospector([
            TableSchema("users", ["id"], "id"),
            TableSchema("profiles", ["id", "owner_id"], "id", [IndexMetadata(["owner_id"], unique=True)]),
            TableSchema("posts", ["id", "owner_id"], "id"),
        ])
        database, _, _ = build(introspector, {"users": {"owner_id": None}})

        assert summary(database, "users") == [
            (HAS_ONE, "users_profile", "profiles"),
            (HAS_MANY, "users_posts", "posts"),
        ]
        assert database.get_model("users").get_relationship("users_profile").foreign_key == "owner_id"

    def test_foreign_key_map(self, introspector):
        """Test the global map of foreign key names."""
        database = Database(introspector)
        database.create_models()
        inferrer = RelationshipInferrer(database)
        inferrer.add_foreign_key("users", "employee_user_id", "employee_user")

        fk_map = inferrer.create_foreign_key_map()

        assert [m.entity.table_name for m in fk_map["user_id"]] == ["users"]
        matches = fk_map["employee_user_id"]
        assert [(m.entity.table_name, m.label, m.additional) for m in matches] == [
            ("users", "employee_user", True),
            ("employee_users", "employee_users", False),
        ]


class TestTableMatcher:
    """Tests for skip/include name conversion."""

    def test_literal(self):
        """Test that plain names stay literal."""
        assert table_matcher("users") == "users"

    def test_glob(self):
        """Test that glob names become anchored patterns."""
        pattern = table_matcher("stats_*")

        assert isinstance(pattern, re.Pattern)
        assert pattern.search("stats_company_employments")
        assert not pattern.search("company_stats_totals")

    def test_compiled_pattern_passthrough(self):
        """Test that compiled patterns are kept."""
        pattern = re.compile(r"^tmp_")
        assert table_matcher(pattern) is pattern


class TestExplorer:
    """Tests for the Explorer."""

    def test_explore(self, introspector, relationships):
        """Test the end-to-end exploration."""
        database = explore(
            introspector,
            skip_tables=["stats_*", "tmp_load_data_table"],
            relationships=relationships,
        )

        tables = [m.table_name for m in database.models]
        assert tables == [
            "users", "companies", "jobs", "websites", "employments",
            "user_rollups", "jobs_websites", "employee_users",
        ]
        assert database.get_model("users").has_relationship("employments", HAS_MANY)
        assert database.get_model("users").has_relationship("user_rollup", HAS_ONE)
        assert database.get_model("companies").has_relationship("website", BELONGS_TO)
        assert database.get_model("employments").has_relationship("company", BELONGS_TO)
        assert database.get_model("jobs").has_relationship("websites", HABTM)

    def test_include_and_type_names(self, introspector):
        """Test include filters and type name overrides."""
        explorer = Explorer(introspector)
        database = explorer.explore(
            include_tables=["users", "user_*"],
            table_type_names={"user_rollups": "Rollup"},
        )

        assert [m.type_name for m in database.models] == ["User", "Rollup"]
        assert summary(database, "users") == [(HAS_ONE, "user_rollup", "user_rollups")]
        assert explorer.inferrer.database is database

    def test_manual_key_for_skipped_table(self, introspector):
        """Test that manual keys must reference explored tables."""
        with pytest.raises(ModelNotFound):
            explore(
                introspector,
                skip_tables=["websites"],
                relationships={"websites": {"company_website_id": "company_website"}},
            )

    def test_from_config(self, reference_schema, tmp_path):
        """Test exploring from a configuration with extensions."""
        schema_file = tmp_path / "schema.yaml"
        reference_schema["tables"]["vehicles"] = {"columns": ["id", "type"], "primary_key": "id"}
        schema_file.write_text(yaml.safe_dump(reference_schema))

        ext_dir = tmp_path / "extensions"
        ext_dir.mkdir()
        (ext_dir / "users.ext.py").write_text("def extend(entity):\n    entity.define('admin', True)\n")

        config = ExplorerConfig(
            schema_file=schema_file,
            skip_tables=["stats_*"],
            relationships={"websites": {"company_website_id": "company_website"}},
            table_type_names={"tmp_load_data_table": "LoadData"},
            extensions_path=ext_dir,
            disable_sti=True,
        )
        database = Explorer.from_config(config)

        assert database.get_model("stats_company_employments") is None
        assert database.get_model("tmp_load_data_table").type_name == "LoadData"
        assert database.get_model("companies").has_relationship("company_website", BELONGS_TO)
        assert database.get_model("users").extensions == {"admin": True}
        assert database.get_model("vehicles").inheritance_column == "_type_disabled"

    def test_from_config_id_suffix(self, tmp_path):
        """Test that the configured suffix is applied before exploring."""
        schema_file = tmp_path / "schema.yaml"
        schema_file.write_text(yaml.safe_dump({"tables": {
            "games": {"columns": ["id"], "primary_key": "id"},
            "scores": {"columns": ["id", "game_ref"], "primary_key": "id"},
        }}))

        database = Explorer.from_config(ExplorerConfig(schema_file=schema_file, id_suffix="_ref"))

        assert ForeignKeyRegistry.id_suffix() == "_ref"
        assert database.get_model("scores").has_relationship("game", BELONGS_TO)

    def test_from_config_resets_id_suffix(self, tmp_path):
        """Test that a config without id_suffix restores the default suffix."""
        schema_file = tmp_path / "schema.yaml"
        schema_file.write_text(yaml.safe_dump({"tables": {
            "games": {"columns": ["id"], "primary_key": "id"},
            "scores": {"columns": ["id", "game_id"], "primary_key": "id"},
        }}))

        Explorer.from_config(ExplorerConfig(schema_file=schema_file, id_suffix="_ref"))
        database = Explorer.from_config(ExplorerConfig(schema_file=schema_file))

        assert ForeignKeyRegistry.id_suffix() == "_id"
        assert database.get_model("scores").has_relationship("game", BELONGS_TO)


class TestSqliteExploration:
    """Exploration against a real database through SQLAlchemy."""

    def test_reference_schema(self, sqlite_engine, relationships):
        """Test that the SQLite schema yields the same graph as the static one."""
        database = explore(
            SqlAlchemyIntrospector(sqlite_engine),
            skip_tables=["stats_*", "tmp_load_data_table"],
            relationships=relationships,
        )

        users = database.get_model("users")
        assert {(r.kind, r.name) for r in users.relationships} == {
            (HAS_MANY, "employments"),
            (HAS_ONE, "user_rollup"),
            (HAS_ONE, "employee_user"),
        }

        companies = database.get_model("companies")
        assert {r.name for r in companies.relationships_of(BELONGS_TO)} == {"website", "company_website"}

        websites = database.get_model("websites")
        assert websites.has_relationship("company_website_companies", HAS_MANY)
        assert websites.get_relationship("jobs").join_table == "jobs_websites"
        assert [m.table_name for m in database.join_tables] == ["jobs_websites"]
