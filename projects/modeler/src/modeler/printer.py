"""Render model definitions as Eloquent model and enum classes."""

from __future__ import annotations

from pathlib import Path

from jinja2 import Environment, FileSystemLoader

from modeler.types import EnumDefinition, ModelDefinition, RelationDefinition, RelationKind

DEFAULT_START_MARKER = "// <prisma-laravel:start>"
DEFAULT_END_MARKER = "// <prisma-laravel:end>"
DEFAULT_PARENT = "Illuminate\\Database\\Eloquent\\Model"

OWNER_MORPHS = frozenset(
    {
        RelationKind.MORPH_ONE,
        RelationKind.MORPH_MANY,
        RelationKind.MORPH_TO_MANY,
        RelationKind.MORPHED_BY_MANY,
    },
)
KEYED_RELATIONS = frozenset({RelationKind.BELONGS_TO, RelationKind.HAS_ONE, RelationKind.HAS_MANY})


def quote(value: str) -> str:
    """Single-quoted PHP string."""
    escaped = value.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


def short_name(name: str) -> str:
    """Class name without its namespace."""
    return name.rsplit("\\", 1)[-1]


def relation_arguments(relation: RelationDefinition) -> list[str]:
    """Arguments of the Eloquent relation call."""
    target = f"{relation.target}::class"
    match relation.kind:
        case RelationKind.MORPH_TO:
            return [quote(relation.morph_name or relation.name)]
        case kind if kind in OWNER_MORPHS:
            arguments = [target, quote(relation.morph_name or relation.name)]
            many = kind in (RelationKind.MORPH_TO_MANY, RelationKind.MORPHED_BY_MANY)
            if relation.pivot_table and many:
                arguments.append(quote(relation.pivot_table))
            elif not many and relation.morph_type_field and relation.morph_id_field:
                arguments += [quote(relation.morph_type_field), quote(relation.morph_id_field)]
            return arguments
        case kind if kind in KEYED_RELATIONS:
            arguments = [target]
            # Composite keys cannot be expressed; Eloquent falls back to conventions
            if len(relation.foreign_key) == 1:
                arguments.append(quote(relation.foreign_key[0]))
                if len(relation.local_key) == 1:
                    arguments.append(quote(relation.local_key[0]))
            return arguments
        case _:
            arguments = [target]
            if relation.pivot_table:
                arguments.append(quote(relation.pivot_table))
            keys = (
                relation.pivot_local,
                relation.pivot_foreign,
                relation.local_key,
                relation.foreign_key,
            )
            if relation.mode == "explicit" and all(len(key) == 1 for key in keys):
                arguments += [quote(key[0]) for key in keys]
            return arguments


def relation_method(relation: RelationDefinition, indent: str = "    ") -> str:
    """PHP method returning the relation."""
    chain = f"->{relation.raw_chain.lstrip('-> ')}" if relation.raw_chain else ""
    call = f"$this->{relation.kind}({', '.join(relation_arguments(relation))}){chain};"
    return "\n".join(
        [
            f"{indent}public function {relation.name}()",
            f"{indent}{{",
            f"{indent}    return {call}",
            f"{indent}}}",
        ],
    )


def php_list_property(name: str, values: list[str], indent: str = "    ") -> str:
    """``protected $name = [...];`` with one value per line."""
    items = "".join(f"{indent}    {quote(value)},\n" for value in values)
    return f"{indent}protected ${name} = [\n{items}{indent}];"


class ModelPrinter:
    """Prints model and enum classes through Jinja2 templates."""

    def __init__(
        self,
        namespace: str = "App\\Models",
        enum_namespace: str = "App\\Enums",
        start_marker: str = DEFAULT_START_MARKER,
        end_marker: str = DEFAULT_END_MARKER,
    ) -> None:
        """Set up the Jinja2 environment over the bundled templates."""
        self.namespace = namespace
        self.enum_namespace = enum_namespace
        self.start_marker = start_marker
        self.end_marker = end_marker
        template_dir = Path(__file__).parent / "templates"
        self.env = Environment(
            loader=FileSystemLoader(template_dir),
            autoescape=False,  # noqa: S701
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def imports(self, model: ModelDefinition) -> list[str]:
        """Fully qualified ``use`` imports of a model, de-duplicated and sorted."""
        names = {model.extends or DEFAULT_PARENT}
        names.update(trait for trait, alias in model.traits if not alias)
        names.update(interface for interface, alias in model.implements if not alias)
        for prop in model.properties:
            if prop.type_annotation and prop.type_annotation.import_:
                names.add(prop.type_annotation.import_)
        names.update(
            f"{self.enum_namespace}\\{prop.enum_ref}" for prop in model.properties if prop.enum_ref
        )
        names.update(name for name in (model.observer, model.factory) if name)
        imports = [name for name in names if "\\" in name]
        imports += [f"{name} as {alias}" for name, alias in (*model.traits, *model.implements) if alias]
        return sorted(imports)

    def casts(self, model: ModelDefinition) -> list[tuple[str, str]]:
        """``(attribute, cast)`` pairs; enums cast to their class."""
        casts: list[tuple[str, str]] = []
        for prop in model.properties:
            if prop.enum_ref:
                casts.append((prop.name, f"{prop.enum_ref}::class"))
            elif prop.cast:
                casts.append((prop.name, quote(prop.cast)))
        return casts

    def body(self, model: ModelDefinition) -> list[str]:
        """Generated class members, in print order."""
        indent = "    "
        members: list[str] = []
        if model.traits:
            members.append(f"{indent}use {', '.join(alias or short_name(trait) for trait, alias in model.traits)};")
        members.append(f"{indent}protected $table = {quote(model.table)};")

        if model.guarded is not None:
            members.append(php_list_property("guarded", model.guarded))
        elif fillable := [p.name for p in model.properties if p.fillable and not p.ignore]:
            members.append(php_list_property("fillable", fillable))
        if hidden := [p.name for p in model.properties if p.hidden]:
            members.append(php_list_property("hidden", hidden))
        if model.with_:
            members.append(php_list_property("with", model.with_))
        if model.touches:
            members.append(php_list_property("touches", model.touches))
        if model.appends:
            members.append(php_list_property("appends", model.appends))
        if casts := self.casts(model):
            items = "".join(f"{indent}    {quote(name)} => {cast},\n" for name, cast in casts)
            members.append(f"{indent}protected $casts = [\n{items}{indent}];")
        if model.factory:
            members.append(
                f"{indent}protected static string $factory = {short_name(model.factory)}::class;",
            )
        if model.observer:
            members.append(
                f"{indent}protected static function booted(): void\n"
                f"{indent}{{\n"
                f"{indent}    static::observe({short_name(model.observer)}::class);\n"
                f"{indent}}}",
            )
        members.extend(relation_method(relation) for relation in model.relations)
        return members

    def block(self, model: ModelDefinition) -> str:
        """The marked region holding the generated members."""
        return "\n\n".join(
            [f"    {self.start_marker}", *self.body(model), f"    {self.end_marker}"],
        )

    def print(self, model: ModelDefinition) -> str:
        """Full text of the model class file."""
        template = self.env.get_template("model.php.jinja")
        return template.render(
            namespace=self.namespace,
            imports=self.imports(model),
            model=model,
            parent=short_name(model.extends or DEFAULT_PARENT),
            implements=[alias or short_name(name) for name, alias in model.implements],
            properties=[p for p in model.properties if not p.ignore],
            block=self.block(model),
        )

    def print_enum(self, enum: EnumDefinition) -> str:
        """Full text of a backed enum file."""
        template = self.env.get_template("enum.php.jinja")
        return template.render(namespace=self.enum_namespace, enum=enum)
