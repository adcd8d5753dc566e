import unittest
from unittest.mock import AsyncMock, MagicMock

from fastapi.testclient import TestClient

from launcher_core.main import app
from launcher_core.registry import get_registry
from launcher_core.schemas import CommandCategory, CommandEntry

SAFARI = CommandEntry(id="app-safari", title="Safari", keywords=["safari"],
                      icon="data:image/png;base64,AAAA",
                      category=CommandCategory.APPLICATION, target="/Applications/Safari.app")
SOUND = CommandEntry(id="settings-sound", title="Sound",
                     keywords=["system settings", "preferences", "sound"],
                     category=CommandCategory.SETTINGS_PANEL, target="Sound")
CATALOG = [SAFARI, SOUND]


class TestCommandRoutes(unittest.TestCase):

    def setUp(self):
        self.registry = MagicMock()
        self.registry.get_available_commands = AsyncMock(return_value=list(CATALOG))
        self.registry.get_command = AsyncMock(
            side_effect=lambda cid: next((c for c in CATALOG if c.id == cid), None))
        self.registry.execute_command = AsyncMock(return_value=True)
        app.dependency_overrides[get_registry] = lambda: self.registry
        # no context manager: skip the lifespan catalog warm-up
        self.client = TestClient(app)

    def tearDown(self):
        app.dependency_overrides.clear()

    def test_list_commands(self):
        response = self.client.get("/api/commands")
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual([c["id"] for c in body], ["app-safari", "settings-sound"])
        self.assertEqual(body[1]["category"], "settings-panel")

    def test_filter_by_category(self):
        body = self.client.get("/api/commands", params={"category": "settings-panel"}).json()
        self.assertEqual([c["id"] for c in body], ["settings-sound"])

    def test_unknown_category_is_rejected(self):
        self.assertEqual(self.client.get("/api/commands", params={"category": "nope"}).status_code, 422)

    def test_strip_icons(self):
        body = self.client.get("/api/commands", params={"include_icons": "false"}).json()
        self.assertIsNone(body[0]["icon"])

    def test_execute(self):
        response = self.client.post("/api/commands/app-safari/execute")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"command_id": "app-safari", "success": True})
        self.registry.execute_command.assert_awaited_once_with("app-safari")

    def test_execute_failure_is_reported(self):
        self.registry.execute_command.return_value = False
        response = self.client.post("/api/commands/settings-sound/execute")
        self.assertEqual(response.json(), {"command_id": "settings-sound", "success": False})

    def test_execute_unknown(self):
        response = self.client.post("/api/commands/app-nope/execute")
        self.assertEqual(response.status_code, 404)
        self.registry.execute_command.assert_not_awaited()

    def test_invalidate(self):
        response = self.client.post("/api/commands/invalidate")
        self.assertEqual(response.json(), {"success": True})
        self.registry.invalidate_cache.assert_called_once_with()


if __name__ == "__main__":
    unittest.main()
