from noteviews.models import Filter, FilterGroup, PropertyDef
from noteviews.vault.properties import infer_property_type, operators_for, scan_properties, validate_rules


def test_infer_property_type() -> None:
    assert infer_property_type("2024-01-02") == "date"
    assert infer_property_type("2024-01-02T08:00") == "datetime"
    assert infer_property_type(["a"]) == "list"
    assert infer_property_type(True) == "checkbox"
    assert infer_property_type(3.5) == "number"
    assert infer_property_type("hello") == "text"
    assert infer_property_type(None) == "unknown"


def test_operators_for_types() -> None:
    assert "on or after" in operators_for("datetime")
    assert operators_for("unknown") == operators_for("text")
    assert operators_for("checkbox") == ["is"]
    assert "≥" in operators_for("number")
    assert "starts with" not in operators_for("list")


def test_scan_properties_includes_builtins_and_frontmatter(loaded_vault) -> None:
    props = {p.key: p.type for p in scan_properties(loaded_vault)}
    assert props["file"] == "file"
    assert props["file.mtime"] == "datetime"
    assert props["file tags"] == "list"
    assert props["rating"] == "number"
    assert props["released"] == "date"
    assert props["cast"] == "list"
    assert props["type"] == "text"
    keys = [p.key for p in scan_properties(loaded_vault)]
    assert keys == sorted(keys)


def test_validate_rules_reports_mismatches() -> None:
    props = [PropertyDef("rating", "number"), PropertyDef("title", "text")]
    group = FilterGroup(
        "AND",
        [
            Filter("rating", ">", "3"),
            Filter("rating", "starts with", "3"),
            FilterGroup("OR", [Filter("title", "on", "2024-01-01")]),
        ],
    )
    issues = validate_rules("Movies", group, props)
    assert [(i.field, i.operator) for i in issues] == [("rating", "starts with"), ("title", "on")]
    assert "Movies" in str(issues[0])
