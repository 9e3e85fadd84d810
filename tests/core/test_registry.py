from pathlib import Path

from intent_check.core.analyzers.express_route import ExpressRouteAnalyzer
from intent_check.core.analyzers.python_route import PYTHON_RECEIVERS
from intent_check.core.analyzers.registry import (
    AnalyzerRunner,
    create_runner,
    load_custom_analyzers,
    validate_plugin,
)
from intent_check.core.intent import Feature
from intent_check.core.matcher import FeatureMatcher

GRAPHQL_PLUGIN = '''
name = "graphql"
supported_types = ["graphql-operation"]
file_extensions = [".graphql"]


def analyze(files):
    return [{"type": "graphql-operation", "method": "QUERY", "path": "users", "file": f, "line": 1} for f in files]


def match(feature, implementations):
    for impl in implementations:
        if impl.path == feature.operation:
            return {"found": True, "implementedIn": impl.file, "line": impl.line}
    return {"found": False}
'''

BROKEN_PLUGIN = '''
name = "broken-routes"
supported_types = ["http-route"]
file_extensions = [".js"]


def analyze(files):
    raise RuntimeError("boom")


def match(feature, implementations):
    raise RuntimeError("boom")
'''


def _route(method: str, path: str) -> Feature:
    return Feature(id=f"{method}-{path}", type="http-route", method=method, path=path)


def test_validate_plugin_reports_missing_capabilities() -> None:
    class _NoMatch:
        name = "partial"
        supported_types = ["x"]

        def analyze(self, files):
            return []

    assert validate_plugin(_NoMatch()) == ["match"]


def test_supported_types_must_be_a_list() -> None:
    class _BareString:
        name = "stringly"
        supported_types = "http-route"

        def analyze(self, files):
            return []

        def match(self, feature, implementations):
            return {"found": False}

    assert validate_plugin(_BareString()) == ["supported_types"]


def test_plugin_with_string_supported_types_is_discarded(write_file, tmp_path: Path) -> None:
    write_file(
        "plugin.py",
        'name = "stringly"\nsupported_types = "http-route"\n\n'
        "def analyze(files):\n    return []\n\n\n"
        "def match(feature, implementations):\n    return {'found': False}\n",
    )
    warnings = []

    assert load_custom_analyzers(["plugin.py"], base_dir=tmp_path, warnings=warnings) == []
    assert "supported_types" in warnings[0]


def test_plugin_without_match_is_discarded(write_file, tmp_path: Path) -> None:
    write_file("plugin.py", 'name = "half"\nsupported_types = ["x"]\n\ndef analyze(files):\n    return []\n')

    assert load_custom_analyzers(["plugin.py"], base_dir=tmp_path) == []


def test_plugin_that_fails_to_import_is_skipped(write_file, tmp_path: Path) -> None:
    write_file("bad.py", "raise ImportError('nope')\n")

    assert load_custom_analyzers(["bad.py", "missing.py"], base_dir=tmp_path) == []


def test_plugin_factory_is_used(write_file, tmp_path: Path) -> None:
    write_file("factory.py", (
        "class _Plugin:\n"
        "    name = 'made'\n"
        "    supported_types = ['x']\n"
        "    def analyze(self, files):\n"
        "        return []\n"
        "    def match(self, feature, implementations):\n"
        "        return {'found': False}\n"
        "\n"
        "def create_analyzer():\n"
        "    return _Plugin()\n"
    ))

    loaded = load_custom_analyzers(["factory.py"], base_dir=tmp_path)

    assert [a.name for a in loaded] == ["made"]


def test_custom_plugin_results_feed_the_matcher(syntax, write_file, tmp_path: Path) -> None:
    write_file("plugins/graphql.py", GRAPHQL_PLUGIN)
    schema = write_file("schema.graphql", "type Query { users: [User] }\n")
    runner = create_runner(syntax, include=[], custom=["plugins/graphql.py"], base_dir=tmp_path)

    impls = runner.analyze_files([schema])
    feature = Feature(id="users-query", type="graphql-operation", operation="users")
    result = FeatureMatcher(runner).check([feature], impls)

    assert impls[0].analyzer == "graphql"
    assert result.outcomes[0].result == "present"
    assert result.outcomes[0].implemented_in == schema


def test_failing_plugin_does_not_stop_builtin_analyzer(syntax, write_file, tmp_path: Path) -> None:
    write_file("broken.py", BROKEN_PLUGIN)
    app = write_file("app.js", "app.get('/users', h);\n")
    runner = create_runner(syntax, include=["express-route"], custom=["broken.py"], base_dir=tmp_path)

    impls = runner.analyze_files([app])
    result = FeatureMatcher(runner).check([_route("GET", "/users")], impls)

    assert [i.analyzer for i in impls] == ["express-route"]
    assert result.outcomes[0].result == "present"
    assert result.outcomes[0].analyzer == "express-route"
    assert any("broken-routes" in w and "analyze" in w for w in runner.warnings)


def test_include_order_decides_priority(syntax, write_file) -> None:
    app = write_file("app.js", "app.get('/users', h);\n")

    class _Shadow:
        name = "shadow"
        supported_types = ["http-route"]
        file_extensions = [".js"]

        def analyze(self, files):
            return [{"type": "http-route", "method": "GET", "path": "/users", "file": "shadow.js", "line": 9}]

        def match(self, feature, implementations):
            impl = implementations[0]
            return {"found": True, "implemented_in": impl.file, "line": impl.line}

    first = AnalyzerRunner([_Shadow(), ExpressRouteAnalyzer(syntax)])
    outcome = FeatureMatcher(first).check([_route("GET", "/users")], first.analyze_files([app])).outcomes[0]
    assert (outcome.analyzer, outcome.implemented_in) == ("shadow", "shadow.js")

    second = AnalyzerRunner([ExpressRouteAnalyzer(syntax), _Shadow()])
    outcome = FeatureMatcher(second).check([_route("GET", "/users")], second.analyze_files([app])).outcomes[0]
    assert (outcome.analyzer, outcome.implemented_in) == ("express-route", app)


def test_files_are_dispatched_by_extension(syntax, write_file) -> None:
    seen = {}

    class _Recorder:
        supported_types = ["x"]

        def __init__(self, name, extensions):
            self.name = name
            self.file_extensions = extensions

        def analyze(self, files):
            seen[self.name] = list(files)
            return []

        def match(self, feature, implementations):
            return {"found": False}

    js = write_file("a.js", "")
    py = write_file("b.py", "")
    runner = AnalyzerRunner([_Recorder("js", [".js"]), _Recorder("none", [])])
    runner.analyze_files([js, py])

    assert seen == {"js": [js]}
    assert runner.file_extensions() == [".js"]


def test_unknown_builtin_names_are_ignored(syntax) -> None:
    runner = create_runner(syntax, include=["python-route", "nope"])

    assert runner.names == ["python-route"]


def test_rejected_plugins_are_reported_as_runner_warnings(syntax, write_file, tmp_path: Path) -> None:
    write_file("half.py", 'name = "half"\nsupported_types = ["x"]\n')

    runner = create_runner(syntax, include=[], custom=["half.py"], base_dir=tmp_path)

    assert runner.names == []
    assert len(runner.warnings) == 1
    assert "half.py" in runner.warnings[0]


def test_runner_exposes_configured_receivers(syntax) -> None:
    runner = create_runner(syntax, receivers={"express-route": ["api"]})

    assert runner.receivers() == {
        "express-route": frozenset({"api"}),
        "python-route": PYTHON_RECEIVERS,
    }
