import unittest
from unittest import mock

from freeradius_operator import operator
from freeradius_operator.errors import FetchError


class TestOperator(unittest.IsolatedAsyncioTestCase):
    def get_memo(self):
        memo = mock.Mock()
        memo.reconciler.reconcile = mock.AsyncMock()
        return memo

    async def test_resource_event_reconciles_namespace(self):
        memo = self.get_memo()
        logger = mock.Mock()

        await operator.on_resource_event(
            type = "MODIFIED",
            name = "ap1",
            namespace = "radius",
            memo = memo,
            logger = logger
        )

        memo.reconciler.reconcile.assert_awaited_once_with("radius")

    async def test_resource_event_logs_reconcile_errors(self):
        memo = self.get_memo()
        memo.reconciler.reconcile.side_effect = FetchError("radius", "main", "Client", "boom")
        logger = mock.Mock()

        await operator.on_resource_event(
            type = None,
            name = "ap1",
            namespace = "radius",
            memo = memo,
            logger = logger
        )

        logger.error.assert_called_once()
        self.assertIn("radius/main", logger.error.call_args.args[0])

    async def test_resource_event_propagates_unexpected_errors(self):
        memo = self.get_memo()
        memo.reconciler.reconcile.side_effect = RuntimeError("boom")

        with self.assertRaises(RuntimeError):
            await operator.on_resource_event(
                type = "ADDED",
                name = "main",
                namespace = "radius",
                memo = memo,
                logger = mock.Mock()
            )

    async def test_resync_reconciles_namespace(self):
        memo = self.get_memo()

        await operator.resync_cluster(namespace = "radius", memo = memo, logger = mock.Mock())

        memo.reconciler.reconcile.assert_awaited_once_with("radius")

    def test_registry_contains_models(self):
        plural_names = { crd.plural_name for crd in operator.registry }

        self.assertEqual(plural_names, { "clusters", "clients", "devices", "users" })
