"""
Unit tests for the command-line entry point and container wiring.

Version: 1.0.0
"""
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from catalog_sync import __main__ as cli
from catalog_sync.container import build_policy, build_sync_service
from catalog_sync.core.exceptions import SetupError
from catalog_sync.schemas.sync import RunStats, SyncMode, SyncType
from catalog_sync.services.sync_service import CatalogSyncService


pytestmark = pytest.mark.unit


class TestParseArgs:

    def test_defaults(self):
        args = cli.parse_args([])
        assert args.mode is None
        assert args.sync_type is None
        assert args.dry_run is False

    def test_flags(self):
        args = cli.parse_args(["--mode", "local_first", "--type", "price", "--dry-run"])
        assert (args.mode, args.sync_type, args.dry_run) == ("local_first", "price", True)

    def test_rejects_unknown_mode(self):
        with pytest.raises(SystemExit):
            cli.parse_args(["--mode", "sideways"])


class TestApplyOverrides:

    def test_flags_override_settings(self, settings):
        cfg = cli.apply_overrides(settings, cli.parse_args(["--type", "inventory", "--dry-run"]))
        assert cfg.sync_type == "inventory"
        assert cfg.sync_dry_run is True
        assert settings.sync_type == "both"

    def test_no_flags_returns_same_settings(self, settings):
        assert cli.apply_overrides(settings, cli.parse_args([])) is settings


class TestMain:

    def test_config_errors_exit_1(self, settings):
        bad = settings.model_copy(update={"shopify_admin_api_token": None})
        with patch.object(cli, "get_settings", return_value=bad), \
                patch.object(cli, "configure_logging"), \
                patch.object(cli, "run_sync", new=AsyncMock()) as mock_run:
            assert cli.main([]) == 1
        mock_run.assert_not_called()

    def test_setup_error_exit_1(self, settings):
        with patch.object(cli, "get_settings", return_value=settings), \
                patch.object(cli, "configure_logging"), \
                patch.object(cli, "run_sync", new=AsyncMock(side_effect=SetupError("no location"))):
            assert cli.main([]) == 1

    def test_item_errors_still_exit_0(self, settings):
        stats = RunStats(errors=3)
        with patch.object(cli, "get_settings", return_value=settings), \
                patch.object(cli, "configure_logging"), \
                patch.object(cli, "run_sync", new=AsyncMock(return_value=stats)) as mock_run:
            assert cli.main(["--dry-run"]) == 0
        assert mock_run.await_args.args[0].sync_dry_run is True


class TestContainer:

    def test_build_policy(self, settings):
        policy = build_policy(settings.model_copy(update={"sync_mode": "local_first", "sync_type": "price"}))
        assert policy.mode == SyncMode.LOCAL_FIRST
        assert policy.sync_type == SyncType.PRICE
        assert policy.location_id is None

    def test_build_sync_service(self, settings):
        http = MagicMock(spec=httpx.AsyncClient)
        service = build_sync_service(http, settings)
        assert isinstance(service, CatalogSyncService)
        assert service.policy.max_concurrency == 25

    def test_discount_source_only_when_configured(self, settings):
        http = MagicMock(spec=httpx.AsyncClient)
        without = build_sync_service(http, settings)
        with_source = build_sync_service(http, settings.model_copy(update={"discount_csv_path": "d.csv"}))
        assert without._discount_source is None
        assert with_source._discount_source.location == "d.csv"
