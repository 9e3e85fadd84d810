from intent_check.core.analyzers.python_route import PythonRouteAnalyzer


def _routes(syntax, write_file, source: str):
    return PythonRouteAnalyzer(syntax).analyze([write_file("main.py", source)])


def test_fastapi_decorators(syntax, write_file) -> None:
    routes = _routes(syntax, write_file, (
        "from fastapi import FastAPI, Depends\n"
        "app = FastAPI()\n"
        "\n"
        "@app.get('/users/{user_id}')\n"
        "async def get_user(user_id: int):\n"
        "    return {}\n"
        "\n"
        "@router.post(\"/items\", dependencies=[Depends(verify_token), Depends(auth.rate_limit)])\n"
        "def create_item():\n"
        "    pass\n"
    ))

    assert [(r.method, r.path, r.line) for r in routes] == [
        ("GET", "/users/{user_id}", 4),
        ("POST", "/items", 8),
    ]
    assert routes[1].middleware == ("verify_token", "auth.rate_limit")


def test_flask_route_with_methods(syntax, write_file) -> None:
    routes = _routes(syntax, write_file, (
        "@bp.route('/login', methods=['GET', 'POST'])\n"
        "@login_required\n"
        "def login():\n"
        "    pass\n"
        "\n"
        "@app.route('/about')\n"
        "def about():\n"
        "    pass\n"
    ))

    assert [(r.method, r.path) for r in routes] == [("GET", "/login"), ("POST", "/login"), ("GET", "/about")]
    assert routes[0].middleware == ("login_required",)
    assert routes[2].middleware == ()


def test_non_route_decorators_and_dynamic_paths_are_ignored(syntax, write_file) -> None:
    routes = _routes(syntax, write_file, (
        "@client.get('/remote')\n"
        "def fetch(): pass\n"
        "\n"
        "@app.get(f'/users/{prefix}')\n"
        "def dynamic(): pass\n"
        "\n"
        "@app.on_event('startup')\n"
        "def boot(): pass\n"
        "\n"
        "@app.get(PATH)\n"
        "def constant(): pass\n"
    ))

    assert routes == []
