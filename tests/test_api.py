import json
import threading
import time

import pytest
from fastapi.testclient import TestClient

from vibe_studio import config, main
from vibe_studio.tree_builder import LocalDirectoryHandle
from tests.fakes import FakeProvider

EXPLAINED = [{"functionName": "add", "explanation": "Adds two numbers."}]


def respond(prompt):
    if "You are a coding agent inside an IDE." in prompt:
        return json.dumps({"summary": "documented add", "updatedContent": "// adds\nfunction add(a, b) { return a + b; }"})
    return "```json\n" + json.dumps(EXPLAINED) + "\n```"


@pytest.fixture
def provider():
    return FakeProvider(respond=respond)


@pytest.fixture
def client(monkeypatch, provider):
    monkeypatch.setattr(main, "create_provider", lambda: provider)
    with TestClient(main.app) as test_client:
        yield test_client


@pytest.fixture
def project():
    root = config.get_workspace_root() / "demo"
    (root / "src").mkdir(parents=True, exist_ok=True)
    (root / "src" / "math.js").write_text("function add(a, b) { return a + b; }", encoding="utf-8")
    (root / "index.html").write_text("<html></html>", encoding="utf-8")
    return root


def wait_for(client, predicate, timeout=3.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        state = client.get("/api/assistant").json()
        if predicate(state):
            return state
        time.sleep(0.02)
    raise AssertionError(f"assistant never reached expected state: {state}")


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_dismissed_picker_returns_current_workspace(client):
    response = client.post("/api/workspace/open_folder", json={})
    assert response.status_code == 200
    assert response.json() == {"folderName": "", "children": [], "fileContents": {}}


def test_open_folder(client, project):
    response = client.post("/api/workspace/open_folder", json={"path": "demo"})

    assert response.status_code == 200
    data = response.json()
    assert data["folderName"] == "demo"
    assert [n["name"] for n in data["children"]] == ["src", "index.html"]
    src = data["children"][0]
    assert src["id"] == "folder:src"
    assert src["type"] == "folder"
    assert src["isOpen"] is False
    assert src["children"][0]["id"] == "file:src/math.js"
    assert data["fileContents"]["math.js"].startswith("function add")


def test_open_folder_errors(client, project):
    assert client.post("/api/workspace/open_folder", json={"path": "../../etc"}).status_code == 403
    missing = client.post("/api/workspace/open_folder", json={"path": "nope"})
    assert missing.status_code == 404
    assert "error" in missing.json()
    assert client.post("/api/workspace/open_folder", json={"path": "demo/index.html"}).status_code == 400


def test_unreadable_subfolder_keeps_previous_workspace(client, project, monkeypatch):
    client.post("/api/workspace/open_folder", json={"path": "demo"})
    broken = config.get_workspace_root() / "broken"
    (broken / "locked").mkdir(parents=True, exist_ok=True)
    (broken / "main.py").write_text("pass", encoding="utf-8")
    scan = LocalDirectoryHandle._scan

    def locked_scan(self):
        if self.path.name == "locked":
            raise PermissionError(f"Permission denied: {self.path}")
        return scan(self)

    monkeypatch.setattr(LocalDirectoryHandle, "_scan", locked_scan)

    response = client.post("/api/workspace/open_folder", json={"path": "broken"})

    assert response.status_code == 500
    assert "locked" in response.json()["error"]
    workspace = client.get("/api/workspace").json()
    assert workspace["folder_name"] == "demo"
    assert [n["name"] for n in workspace["children"]] == ["src", "index.html"]
    assert client.post("/api/workspace/select", json={"name": "main.py"}).status_code == 404


def test_open_single_file_replaces_workspace(client, project):
    client.post("/api/workspace/open_folder", json={"path": "demo"})

    opened = client.post("/api/workspace/open_file", json={"name": "scratch.py", "content": "x = 1"})

    assert opened.json() == {"name": "scratch.py", "content": "x = 1"}
    workspace = client.get("/api/workspace").json()
    assert workspace["folder_name"] == ""
    assert workspace["active_file"] == "scratch.py"
    assert [n["id"] for n in workspace["children"]] == ["file:scratch.py"]
    assert client.post("/api/workspace/select", json={"name": "math.js"}).status_code == 404


def test_select_toggle_and_edit(client, project):
    client.post("/api/workspace/open_folder", json={"path": "demo"})

    selected = client.post("/api/workspace/select", json={"name": "math.js"})
    assert selected.json()["content"].startswith("function add")
    assert client.post("/api/workspace/select", json={"name": "other.js"}).status_code == 404

    toggled = client.post("/api/workspace/toggle", json={"id": "folder:src"})
    assert toggled.json() == {"id": "folder:src", "isOpen": True}
    assert client.get("/api/workspace").json()["children"][0]["isOpen"] is True

    updated = client.put("/api/editor/content", json={"content": "const x = 1;"})
    assert updated.json() == {"name": "math.js", "content": "const x = 1;"}

    selection = client.post("/api/editor/selection", json={"start": 6, "end": 7})
    assert selection.json() == {"text": "x"}
    assert client.get("/api/editor/selection").json() == {"text": "x"}
    assert client.post("/api/editor/selection", json={"start": 5, "end": 5}).json() == {"text": ""}


def test_edit_without_active_file(client):
    assert client.put("/api/editor/content", json={"content": "x"}).status_code == 409


def test_selecting_a_file_explains_it(client, project, provider):
    client.post("/api/workspace/open_folder", json={"path": "demo"})
    client.post("/api/workspace/select", json={"name": "math.js"})

    state = wait_for(client, lambda s: s["explanation"])

    assert state["explanation"] == "add: Adds two numbers."
    assert state["mode"] == "teacher"
    assert "function add" in provider.prompts[0]


def test_vibe_task_requires_vibe_mode(client, project):
    client.post("/api/workspace/open_folder", json={"path": "demo"})
    client.post("/api/workspace/select", json={"name": "math.js"})

    assert client.post("/api/assistant/vibe", json={"prompt": "document add"}).status_code == 409


def test_vibe_task_updates_active_file(client, project, provider):
    client.post("/api/workspace/open_folder", json={"path": "demo"})
    mode = client.post("/api/assistant/mode", json={"mode": "vibe"})
    assert mode.json()["mode"] == "vibe"
    client.post("/api/workspace/select", json={"name": "math.js"})

    response = client.post("/api/assistant/vibe", json={"prompt": "document add"})

    body = response.json()
    assert body["status"] == {"state": "succeeded", "message": "documented add (updated math.js)"}
    assert body["content"].startswith("// adds\n")
    assert client.get("/api/assistant").json()["edit_status"]["message"] == "documented add (updated math.js)"
    assert len(provider.prompts) == 1


def test_vibe_task_without_active_file(client, provider):
    client.post("/api/assistant/mode", json={"mode": "vibe"})

    body = client.post("/api/assistant/vibe", json={"prompt": "anything"}).json()

    assert body["status"]["message"] == "No active file content available."
    assert provider.prompts == []


def test_invalid_mode(client):
    assert client.post("/api/assistant/mode", json={"mode": "pirate"}).status_code == 422


class FakePty:
    """Stands in for a shell: prints a prompt, echoes one input, then exits."""
    instances = []

    def __init__(self):
        self.pid = 4242
        self.written = []
        self.alive = True
        self.reads = 0
        self.got_input = threading.Event()

    @classmethod
    def spawn(cls, argv, cwd=None, env=None):
        instance = cls()
        cls.instances.append(instance)
        return instance

    def isalive(self):
        return self.alive

    def read(self, size):
        self.reads += 1
        if self.reads == 1:
            return b"$ "
        if self.reads == 2 and self.got_input.wait(timeout=2):
            return b"echo:" + self.written[-1]
        raise EOFError

    def write(self, data):
        self.written.append(data)
        self.got_input.set()

    def terminate(self, force=False):
        self.alive = False


def test_terminal_websocket(client, monkeypatch):
    monkeypatch.setattr(main.ptyprocess, "PtyProcess", FakePty)

    with client.websocket_connect("/ws/terminal") as ws:
        assert ws.receive_json() == {"type": "output", "data": "$ "}
        ws.send_json({"type": "input", "data": "ls\n"})
        assert ws.receive_json() == {"type": "output", "data": "echo:ls\n"}

    assert FakePty.instances[-1].written == [b"ls\n"]
