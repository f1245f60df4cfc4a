"""Tests for relationship inference."""

import logging

import pytest

from dmmf.errors import SchemaError
from dmmf.main import get_model, make_document, make_field, make_model
from dmmf.types import Document, Field
from modeler.relations import build_relations, infer_relations, pivot_name, relation_name
from modeler.types import RelationDefinition, RelationKind

AUTOINCREMENT = {"name": "autoincrement", "args": []}


def primary_id() -> Field:
    """An auto-incremented ``id`` primary key."""
    return make_field("id", "Int", is_id=True, default=AUTOINCREMENT)


def owner(
    name: str,
    target: str,
    columns: list[str],
    relation: str,
    documentation: str | None = None,
) -> Field:
    """A relation field owning foreign key fields that reference ``id``."""
    return make_field(
        name,
        target,
        kind="object",
        relation_name=relation,
        relation_from=columns,
        relation_to=["id"] * len(columns),
        documentation=documentation,
    )


def back(name: str, target: str, relation: str, *, is_list: bool = True) -> Field:
    """A relation field owning no foreign key."""
    return make_field(
        name,
        target,
        kind="object",
        is_list=is_list,
        is_required=is_list,
        relation_name=relation,
    )


def relations_of(document: Document, model: str) -> dict[str, RelationDefinition]:
    """Relations of a model keyed by accessor name."""
    return {r.name: r for r in build_relations(document, get_model(document, model))}


@pytest.fixture(name="users_posts")
def create_users_posts() -> Document:
    """Users own many posts through ``posts.user_id``."""
    return make_document(
        [
            make_model("User", [primary_id(), back("posts", "Post", "PostToUser")], db_name="users"),
            make_model(
                "Post",
                [primary_id(), make_field("user_id", "Int"), owner("user", "User", ["user_id"], "PostToUser")],
                db_name="posts",
            ),
        ],
    )


def test_users_posts_scenario(users_posts: Document) -> None:
    """Test belongsTo and hasMany share the same key columns."""
    post = relations_of(users_posts, "Post")["user"]
    assert post.kind == RelationKind.BELONGS_TO
    assert post.target == "User"
    assert post.foreign_key == ("user_id",)
    assert post.local_key == ("id",)

    user = relations_of(users_posts, "User")["posts"]
    assert user.kind == RelationKind.HAS_MANY
    assert user.target == "Post"
    assert user.foreign_key == ("user_id",)
    assert user.local_key == ("id",)


def test_has_one() -> None:
    """Test a single back-reference to a single owning side is hasOne."""
    document = make_document(
        [
            make_model("User", [primary_id(), back("profile", "Profile", "ProfileToUser", is_list=False)]),
            make_model(
                "Profile",
                [
                    primary_id(),
                    make_field("user_id", "Int", is_unique=True),
                    owner("user", "User", ["user_id"], "ProfileToUser"),
                ],
            ),
        ],
    )
    profile = relations_of(document, "User")["profile"]
    assert profile.kind == RelationKind.HAS_ONE
    assert profile.foreign_key == ("user_id",)
    assert profile.local_key == ("id",)


def test_implicit_many_to_many_symmetry() -> None:
    """Test both sides agree on the sorted pivot name."""
    document = make_document(
        [
            make_model("Tag", [primary_id(), back("posts", "Post", "PostToTag")], db_name="Tags"),
            make_model("Post", [primary_id(), back("tags", "Tag", "PostToTag")], db_name="posts"),
        ],
    )
    tags = relations_of(document, "Post")["tags"]
    posts = relations_of(document, "Tag")["posts"]

    assert tags.kind == posts.kind == RelationKind.BELONGS_TO_MANY
    assert tags.mode == posts.mode == "implicit"
    assert tags.pivot_table == posts.pivot_table == "posts_tags"
    assert tags.local_key == ("id",)
    assert tags.foreign_key == ("id",)
    assert pivot_name("tags", "posts") == pivot_name("posts", "tags")


@pytest.fixture(name="tagging")
def create_tagging() -> Document:
    """Posts and tags joined through an explicit ``post_tag`` model."""
    post_tag = make_model(
        "PostTag",
        [
            make_field("post_id", "Int"),
            make_field("tag_id", "Int"),
            make_field("note", "String", documentation="@pivot"),
            make_field("weight", "Int"),
            make_field("created_at", "DateTime"),
            owner("post", "Post", ["post_id"], "PostToPostTag"),
            owner("tag", "Tag", ["tag_id"], "PostTagToTag"),
        ],
        db_name="post_tag",
        primary_key=["post_id", "tag_id"],
        documentation="@pivot(weight, post_id) @pivotAlias(tagging) @withTimestamps",
    )
    return make_document(
        [
            make_model("Post", [primary_id(), back("postTags", "PostTag", "PostToPostTag")], db_name="posts"),
            make_model("Tag", [primary_id(), back("postTags", "PostTag", "PostTagToTag")], db_name="tags"),
            post_tag,
        ],
    )


def test_explicit_many_to_many(tagging: Document) -> None:
    """Test a pivot model resolves to belongsToMany with its extras."""
    relation = relations_of(tagging, "Post")["postTags"]

    assert relation.kind == RelationKind.BELONGS_TO_MANY
    assert relation.mode == "explicit"
    assert relation.target == "Tag"
    assert relation.pivot_table == "post_tag"
    assert relation.pivot_local == ("post_id",)
    assert relation.pivot_foreign == ("tag_id",)
    assert relation.local_key == ("id",)
    assert relation.foreign_key == ("id",)
    assert relation.pivot_columns == ("weight", "note")
    assert relation.pivot_alias == "tagging"
    assert relation.with_timestamps is True
    assert relation.raw_chain == "as('tagging')->withPivot('weight', 'note')->withTimestamps()"

    other_side = relations_of(tagging, "Tag")["postTags"]
    assert other_side.target == "Post"
    assert other_side.pivot_local == ("tag_id",)


def test_pivot_model_keeps_belongs_to(tagging: Document) -> None:
    """Test the pivot's own relations stay belongsTo."""
    relations = relations_of(tagging, "PostTag")
    assert relations["post"].kind == RelationKind.BELONGS_TO
    assert relations["tag"].kind == RelationKind.BELONGS_TO


def test_self_join_pivot() -> None:
    """Test a pivot whose both ends reference the same model."""
    follow = make_model(
        "Follow",
        [
            make_field("follower_id", "Int"),
            make_field("following_id", "Int"),
            owner("follower", "User", ["follower_id"], "follower"),
            owner("following", "User", ["following_id"], "following"),
        ],
        db_name="follows",
        primary_key=["follower_id", "following_id"],
    )
    user = make_model(
        "User",
        [primary_id(), back("following", "Follow", "follower"), back("followers", "Follow", "following")],
        db_name="users",
    )
    relations = relations_of(make_document([user, follow]), "User")

    assert relations["following"].kind == RelationKind.BELONGS_TO_MANY
    assert relations["following"].target == "User"
    assert relations["following"].pivot_local == ("follower_id",)
    assert relations["following"].pivot_foreign == ("following_id",)
    assert relations["followers"].pivot_local == ("following_id",)
    assert relations["followers"].pivot_foreign == ("follower_id",)


def test_ambiguous_pivot_falls_back_to_has_many() -> None:
    """Test two candidate other ends mean no pivot."""
    membership = make_model(
        "Membership",
        [
            primary_id(),
            make_field("user_id", "Int"),
            make_field("team_id", "Int"),
            make_field("role_id", "Int"),
            owner("user", "User", ["user_id"], "MembershipToUser"),
            owner("team", "Team", ["team_id"], "MembershipToTeam"),
            owner("role", "Role", ["role_id"], "MembershipToRole"),
        ],
        unique_fields=[["user_id", "team_id"], ["user_id", "role_id"]],
    )
    document = make_document(
        [
            make_model("User", [primary_id(), back("memberships", "Membership", "MembershipToUser")]),
            make_model("Team", [primary_id(), back("memberships", "Membership", "MembershipToTeam")]),
            make_model("Role", [primary_id(), back("memberships", "Membership", "MembershipToRole")]),
            membership,
        ],
    )
    assert relations_of(document, "User")["memberships"].kind == RelationKind.HAS_MANY
    assert relations_of(document, "Team")["memberships"].kind == RelationKind.BELONGS_TO_MANY


def test_second_key_back_to_model_is_not_pivot() -> None:
    """Test a child with two keys back to the same model stays hasMany."""
    match = make_model(
        "Match",
        [
            primary_id(),
            make_field("home_id", "Int"),
            make_field("away_id", "Int"),
            make_field("league_id", "Int"),
            owner("home", "Team", ["home_id"], "HomeTeam"),
            owner("away", "Team", ["away_id"], "AwayTeam"),
            owner("league", "League", ["league_id"], "LeagueToMatch"),
        ],
        unique_fields=[["home_id", "league_id"]],
    )
    document = make_document(
        [
            make_model(
                "Team",
                [primary_id(), back("home", "Match", "HomeTeam"), back("away", "Match", "AwayTeam")],
            ),
            make_model("League", [primary_id(), back("matches", "Match", "LeagueToMatch")]),
            match,
        ],
    )
    team = relations_of(document, "Team")
    assert team["home"].kind == RelationKind.HAS_MANY
    assert team["home"].target == "Match"
    assert team["home"].foreign_key == ("home_id",)
    assert team["away"].kind == RelationKind.HAS_MANY


def test_not_unique_pair_is_not_pivot(users_posts: Document) -> None:
    """Test an ordinary child table with two keys stays hasMany."""
    post = get_model(users_posts, "Post")
    post["fields"] += [
        make_field("category_id", "Int"),
        owner("category", "Category", ["category_id"], "CategoryToPost"),
    ]
    users_posts["datamodel"]["models"].append(
        make_model("Category", [primary_id(), back("posts", "Post", "CategoryToPost")]),
    )
    assert relations_of(users_posts, "User")["posts"].kind == RelationKind.HAS_MANY


def test_skipped_fields(users_posts: Document) -> None:
    """Test @ignore and model-scoped @local drop a relation."""
    get_model(users_posts, "Post")["fields"][2]["documentation"] = "@local(model)"
    get_model(users_posts, "User")["fields"][1]["documentation"] = "@ignore"
    assert relations_of(users_posts, "Post") == {}
    assert relations_of(users_posts, "User") == {}


def test_migrator_local_keeps_model_relation(users_posts: Document) -> None:
    """Test @local(migrator) does not affect the model side."""
    get_model(users_posts, "Post")["fields"][2]["documentation"] = "@local(migrator)"
    assert "user" in relations_of(users_posts, "Post")


def test_pure_back_reference_has_no_relation() -> None:
    """Test a list field without any owning side yields nothing."""
    document = make_document(
        [
            make_model("A", [primary_id(), back("bs", "B", "AB")]),
            make_model("B", [primary_id(), back("a", "A", "AB", is_list=False)]),
        ],
    )
    assert relations_of(document, "A") == {}


def test_unknown_target_model() -> None:
    """Test a relation to a missing model fails fast."""
    document = make_document([make_model("A", [primary_id(), back("ghosts", "Ghost", "AGhost")])])
    with pytest.raises(SchemaError):
        build_relations(document, get_model(document, "A"))


@pytest.mark.parametrize(
    ("field_name", "expected"),
    [("authorId", "author"), ("author_id", "author"), ("author", "author"), ("Id", "Id")],
)
def test_relation_name(field_name: str, expected: str) -> None:
    """Test trailing id suffixes are stripped."""
    assert relation_name(field_name) == expected


def test_name_collision_is_reported(caplog: pytest.LogCaptureFixture) -> None:
    """Test the first relation wins and the dropped one is surfaced."""
    document = make_document(
        [
            make_model("Thing", [primary_id(), back("comments", "Comment", "CommentToThing")]),
            make_model(
                "Comment",
                [
                    primary_id(),
                    make_field("commentable_id", "Int"),
                    make_field("commentable_type", "String"),
                    owner("commentable", "Thing", ["commentable_id"], "CommentToThing"),
                ],
            ),
        ],
    )
    with caplog.at_level(logging.WARNING, logger="modeler.relations"):
        registry = infer_relations(document, get_model(document, "Comment"))

    assert [r.kind for r in registry.relations] == [RelationKind.BELONGS_TO]
    assert len(registry.collisions) == 1
    collision = registry.collisions[0]
    assert collision.name == "commentable"
    assert collision.kept == RelationKind.BELONGS_TO
    assert collision.dropped == RelationKind.MORPH_TO
    assert "commentable" in caplog.text
