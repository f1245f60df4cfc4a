"""Tests for model definitions and their printed PHP classes."""

import pytest

from dmmf.main import get_model, make_document, make_field, make_model
from dmmf.types import Document
from modeler.main import build_enums, build_model, build_models
from modeler.printer import ModelPrinter, relation_method
from modeler.types import ModelDefinition, RelationDefinition, RelationKind

USER_DOC = (
    "Registered users "
    "@trait:Illuminate\\Database\\Eloquent\\SoftDeletes "
    "@implements:App\\Contracts\\Auditable as Audit "
    "@observer:App\\Observers\\UserObserver "
    "@factory:Database\\Factories\\UserFactory "
    "@with(team) @touch(team) @appends(full_name) @silent(model)"
)


@pytest.fixture(name="document")
def create_document() -> Document:
    """Users with a role enum belong to teams."""
    user = make_model(
        "User",
        [
            make_field("id", "Int", is_id=True),
            make_field("email", "String", documentation="@fillable"),
            make_field("password", "String", documentation="@fillable @hidden"),
            make_field("role", "Role", kind="enum"),
            make_field("price", "Decimal", documentation="@cast{decimal:2}"),
            make_field(
                "meta",
                "Json",
                documentation='@type{import: "App\\Types\\Meta", type: Meta}',
            ),
            make_field("bio", "String", is_required=False),
            make_field("secret", "String", documentation="@ignore"),
            make_field("createdAt", "DateTime", db_name="created_at"),
            make_field("team_id", "Int"),
            make_field(
                "team",
                "Team",
                kind="object",
                relation_name="TeamToUser",
                relation_from=["team_id"],
                relation_to=["id"],
            ),
        ],
        db_name="users",
        documentation=USER_DOC,
    )
    team = make_model(
        "Team",
        [
            make_field("id", "Int", is_id=True),
            make_field(
                "users",
                "User",
                kind="object",
                is_list=True,
                relation_name="TeamToUser",
                documentation="@with",
            ),
        ],
        db_name="teams",
        documentation="@guarded(id)",
    )
    role = {
        "name": "Role",
        "values": [{"name": "ADMIN", "dbName": "admin"}, {"name": "MEMBER", "dbName": None}],
    }
    return make_document([user, team], enums=[role])


def test_build_model_directives(document: Document) -> None:
    """Test model-level directives populate the definition."""
    model = build_model(document, get_model(document, "User"))

    assert model.class_name == "User"
    assert model.table == "users"
    assert model.traits == [("Illuminate\\Database\\Eloquent\\SoftDeletes", None)]
    assert model.implements == [("App\\Contracts\\Auditable", "Audit")]
    assert model.observer == "App\\Observers\\UserObserver"
    assert model.factory == "Database\\Factories\\UserFactory"
    assert model.with_ == ["team"]
    assert model.touches == ["team"]
    assert model.appends == ["full_name"]
    assert model.silent is True
    assert model.guarded is None
    assert model.doc == "Registered users"


def test_build_model_properties(document: Document) -> None:
    """Test field directives and types shape the properties."""
    properties = {p.name: p for p in build_model(document, get_model(document, "User")).properties}

    assert properties["email"].fillable is True
    assert properties["password"].hidden is True
    assert properties["role"].enum_ref == "Role"
    assert properties["role"].php_type == "Role"
    assert properties["price"].cast == "decimal:2"
    assert properties["price"].php_type == "string"
    assert properties["meta"].type_annotation is not None
    assert properties["meta"].type_annotation.type == "Meta"
    assert properties["meta"].type_annotation.import_ == "App\\Types\\Meta"
    assert properties["bio"].optional is True
    assert properties["secret"].ignore is True
    assert properties["createdAt"].column == "created_at"
    assert properties["createdAt"].php_type == "\\Illuminate\\Support\\Carbon"
    assert "team" not in properties


def test_build_model_guarded_and_field_with(document: Document) -> None:
    """Test @guarded replaces fillable and @with on fields eager-loads."""
    team = build_model(document, get_model(document, "Team"))
    assert team.guarded == ["id"]
    assert team.with_ == ["users"]
    assert team.silent is False
    assert [(r.name, r.kind) for r in team.relations] == [("users", RelationKind.HAS_MANY)]


def test_build_models_in_document_order(document: Document) -> None:
    """Test every model is built once, in order."""
    assert [model.class_name for model in build_models(document)] == ["User", "Team"]


def test_build_enums(document: Document) -> None:
    """Test enum cases use the database name when mapped."""
    (role,) = build_enums(document)
    assert role.name == "Role"
    assert role.cases == (("ADMIN", "admin"), ("MEMBER", "MEMBER"))


def test_print_model(document: Document) -> None:
    """Test the printed class carries the generated members."""
    model = build_model(document, get_model(document, "User"))
    php = ModelPrinter().print(model)

    assert php.startswith("<?php\n\nnamespace App\\Models;\n")
    assert "use App\\Enums\\Role;\n" in php
    assert "use App\\Contracts\\Auditable as Audit;\n" in php
    assert "use Database\\Factories\\UserFactory;\n" in php
    assert "use Illuminate\\Database\\Eloquent\\Model;\n" in php
    assert "class User extends Model implements Audit\n{\n" in php
    assert " * Registered users\n" in php
    assert " * @property string|null $bio\n" in php
    assert "$secret" not in php
    assert "    use SoftDeletes;" in php
    assert "    protected $table = 'users';" in php
    assert "    protected $fillable = [\n        'email',\n        'password',\n    ];" in php
    assert "    protected $hidden = [\n        'password',\n    ];" in php
    assert "        'role' => Role::class,\n" in php
    assert "        'price' => 'decimal:2',\n" in php
    assert "    protected static string $factory = UserFactory::class;" in php
    assert "        static::observe(UserObserver::class);" in php
    assert "return $this->belongsTo(Team::class, 'team_id', 'id');" in php


def test_print_model_markers() -> None:
    """Test the generated block sits between the configured markers."""
    printer = ModelPrinter(namespace="Domain\\Models", start_marker="// begin", end_marker="// end")
    php = printer.print(ModelDefinition(class_name="Plain", table="plains"))

    assert "namespace Domain\\Models;" in php
    start = php.index("    // begin")
    end = php.index("    // end")
    assert start < php.index("protected $table = 'plains';") < end
    assert php.rstrip().endswith("}")


def test_print_trait_alias() -> None:
    """Test an aliased trait is imported under and used by its alias."""
    user = make_model(
        "User",
        [make_field("id", "Int", is_id=True)],
        documentation="@trait:App\\Concerns\\HasUuid as Uuid @trait:Illuminate\\Notifications\\Notifiable",
    )
    document = make_document([user])
    model = build_model(document, user)
    assert model.traits == [("App\\Concerns\\HasUuid", "Uuid"), ("Illuminate\\Notifications\\Notifiable", None)]

    php = ModelPrinter().print(model)
    assert "use App\\Concerns\\HasUuid as Uuid;\n" in php
    assert "use App\\Concerns\\HasUuid;\n" not in php
    assert "use Illuminate\\Notifications\\Notifiable;\n" in php
    assert "    use Uuid, Notifiable;" in php


def test_print_guarded() -> None:
    """Test guarded models print no fillable list."""
    model = ModelDefinition(class_name="Team", table="teams", guarded=["id"])
    php = ModelPrinter().print(model)
    assert "protected $guarded = [\n        'id',\n    ];" in php
    assert "$fillable" not in php


def test_print_enum(document: Document) -> None:
    """Test enums print as string-backed PHP enums."""
    (role,) = build_enums(document)
    php = ModelPrinter(enum_namespace="App\\Enums").print_enum(role)

    assert "namespace App\\Enums;" in php
    assert "enum Role: string\n{\n" in php
    assert "    case ADMIN = 'admin';\n" in php
    assert "    case MEMBER = 'MEMBER';\n" in php


@pytest.mark.parametrize(
    ("relation", "call"),
    [
        (
            RelationDefinition("comments", RelationKind.HAS_MANY, "Comment", ("post_id",), ("id",)),
            "$this->hasMany(Comment::class, 'post_id', 'id');",
        ),
        (
            RelationDefinition("owner", RelationKind.BELONGS_TO, "Team", ("a", "b"), ("x", "y")),
            "$this->belongsTo(Team::class);",
        ),
        (
            RelationDefinition("commentable", RelationKind.MORPH_TO, morph_name="commentable"),
            "$this->morphTo('commentable');",
        ),
        (
            RelationDefinition(
                "comments",
                RelationKind.MORPH_MANY,
                "Comment",
                morph_name="commentable",
                raw_chain="latest()",
            ),
            "$this->morphMany(Comment::class, 'commentable')->latest();",
        ),
        (
            RelationDefinition(
                "tags",
                RelationKind.MORPH_TO_MANY,
                "Tag",
                pivot_table="taggables",
                morph_name="taggable",
            ),
            "$this->morphToMany(Tag::class, 'taggable', 'taggables');",
        ),
        (
            RelationDefinition(
                "tags",
                RelationKind.BELONGS_TO_MANY,
                "Tag",
                mode="implicit",
                pivot_table="posts_tags",
                local_key=("id",),
                foreign_key=("id",),
            ),
            "$this->belongsToMany(Tag::class, 'posts_tags');",
        ),
        (
            RelationDefinition(
                "tags",
                RelationKind.BELONGS_TO_MANY,
                "Tag",
                ("id",),
                ("id",),
                mode="explicit",
                pivot_table="post_tag",
                pivot_local=("post_id",),
                pivot_foreign=("tag_id",),
                raw_chain="as('tagging')->withTimestamps()",
            ),
            "$this->belongsToMany(Tag::class, 'post_tag', 'post_id', 'tag_id', 'id', 'id')"
            "->as('tagging')->withTimestamps();",
        ),
    ],
)
def test_relation_method(relation: RelationDefinition, call: str) -> None:
    """Test each relation kind renders its Eloquent call."""
    method = relation_method(relation)
    assert method.startswith(f"    public function {relation.name}()\n    {{\n")
    assert f"        return {call}\n" in method
