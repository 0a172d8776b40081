import allodisburse.config as config_module
from allodisburse.config import Settings


class TestSettings:
    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("RPC_URLS", '{"10": "https://rpc.example"}')
        monkeypatch.setenv("CONFIRM_INTERMEDIATE_STEPS", "false")

        settings = Settings(_env_file=None)

        assert settings.rpc_urls == {10: "https://rpc.example"}
        assert settings.confirm_intermediate_steps is False

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("RPC_URLS", raising=False)
        settings = Settings(_env_file=None)
        assert settings.rpc_urls == {}
        assert settings.receipt_max_polls == 90

    def test_not_built_at_import(self):
        assert not hasattr(config_module, "settings")
