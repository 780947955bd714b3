from plansync.core.errors import PlanLoadError
from plansync.core.io.load_document import dump_document, load_document


def test_load_yaml_success():
    doc = load_document("examples/experience.yaml", "experience")
    assert doc["_id"] == "exp-paris"
    assert isinstance(doc["plan_items"], list)
    assert doc["__file__"] == "examples/experience.yaml"


def test_load_json_success():
    doc = load_document("examples/plan.json", "plan")
    assert len(doc["plan"]) == 2


def test_load_missing_file():
    try:
        load_document("examples/does-not-exist.yaml", "plan")
        assert False, "expected PlanLoadError"
    except PlanLoadError as e:
        assert e.code == "E_FILE_NOT_FOUND"


def test_load_unsupported_format(tmp_path):
    p = tmp_path / "plan.txt"
    p.write_text("hello", encoding="utf-8")
    try:
        load_document(str(p), "plan")
        assert False, "expected PlanLoadError"
    except PlanLoadError as e:
        assert e.code == "E_UNSUPPORTED_FORMAT"


def test_load_bad_json(tmp_path):
    p = tmp_path / "plan.json"
    p.write_text("{not json", encoding="utf-8")
    try:
        load_document(str(p), "plan")
        assert False, "expected PlanLoadError"
    except PlanLoadError as e:
        assert e.code == "E_JSON_PARSE"


def test_load_non_mapping(tmp_path):
    p = tmp_path / "plan.yaml"
    p.write_text("- a\n- b\n", encoding="utf-8")
    try:
        load_document(str(p), "plan")
        assert False, "expected PlanLoadError"
    except PlanLoadError as e:
        assert e.code == "E_INVALID_TOP_LEVEL"


def test_dump_drops_file_marker(tmp_path):
    doc = load_document("examples/plan-in-sync.yaml", "plan")
    out = tmp_path / "nested" / "copy.json"
    dump_document(doc, str(out))

    again = load_document(str(out), "plan")
    assert again["_id"] == "plan-1"
    assert again["__file__"] == str(out)
    assert "__file__" not in out.read_text(encoding="utf-8")
