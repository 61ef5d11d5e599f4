import asyncio
import logging

import httpx
import pydantic

from easykube import ApiError

from . import context
from .builder import ManifestBuilder, RenderedCluster
from .errors import (
    ApplyError,
    ClusterFailed,
    InvalidResource,
    PassFailed,
    ReconcileError,
)
from .index import ResourceIndex
from .models import v1alpha1 as api
from .secrets import SecretResolver


logger = logging.getLogger(__name__)


async def gather_all(*aws):
    """
    Like asyncio.gather, except that every awaitable runs to completion before the
    first error, if any, is raised.
    """
    results = await asyncio.gather(*aws, return_exceptions = True)
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return results


def mark_default(cluster):
    """
    Returns a copy of the cluster that is flagged as the default cluster.
    """
    spec = cluster.spec.model_copy(update = { "is_default_cluster": True })
    return cluster.model_copy(update = { "spec": spec })


class Reconciler:
    """
    Reconciles the FreeRADIUS clusters in a namespace.

    At most one pass runs for each namespace at a time. A request to reconcile a
    namespace that already has a pass in progress waits for that pass and shares
    its outcome.
    """
    def __init__(
        self,
        ekclient,
        templates,
        *,
        api_group,
        app_name,
        image,
        cluster_label = "clusterName",
        dry_run = False,
        allow_cross_namespace_secret_refs = True
    ):
        self.ekclient = ekclient
        self.templates = templates
        self.app_name = app_name
        self.image = image
        self.dry_run = dry_run
        self.index = ResourceIndex(ekclient, api_group, cluster_label)
        self.resolver = SecretResolver(ekclient, allow_cross_namespace_secret_refs)
        self.builder = ManifestBuilder(app_name, cluster_label)
        #: In dry-run mode, the objects that would have been applied,
        #: indexed by (namespace, kind, name)
        self.recorded = {}
        # The in-flight pass for each namespace
        self._passes = {}

    async def reconcile(self, namespace):
        """
        Reconciles the given namespace, or waits for the pass that is already
        reconciling it.
        """
        task = self._passes.get(namespace)
        if task is None or task.done():
            logger.debug("[%s] starting reconciliation", namespace)
            task = asyncio.create_task(self._reconcile_namespace(namespace))
            self._passes[namespace] = task
            task.add_done_callback(lambda t: self._pass_finished(namespace, t))
        else:
            logger.debug("[%s] reconciliation already in progress - waiting for it", namespace)
        # A pass runs to completion even if the caller goes away
        return await asyncio.shield(task)

    def _pass_finished(self, namespace, task):
        if self._passes.get(namespace) is task:
            del self._passes[namespace]

    async def _reconcile_namespace(self, namespace):
        objs = await self.index.list_clusters(namespace)
        defaults = [
            obj["metadata"]["name"]
            for obj in objs
            if (obj.get("spec") or {}).get("isDefaultCluster")
        ]
        if len(defaults) > 1:
            logger.warning(
                "[%s] multiple default clusters (%s) - unlabelled resources "
                "will be shared between them",
                namespace,
                ", ".join(defaults)
            )
        logger.info("[%s] reconciling %d cluster(s)", namespace, len(objs))
        # Each cluster is reconciled independently so that one failing cluster
        # does not stop the others from being applied
        results = await asyncio.gather(
            *(self._reconcile_cluster(namespace, obj, len(objs) == 1) for obj in objs),
            return_exceptions = True
        )
        errors = []
        for obj, result in zip(objs, results):
            if isinstance(result, ReconcileError):
                logger.error("%s", result)
                errors.append(result)
            elif isinstance(result, BaseException):
                logger.error(
                    "[%s/%s] unexpected error during reconciliation",
                    namespace,
                    obj["metadata"]["name"],
                    exc_info = result
                )
                errors.append(result)
        if errors:
            raise PassFailed(namespace, errors)
        logger.info("[%s] reconciliation complete", namespace)

    def validate_cluster(self, namespace, obj):
        """
        Returns the cluster model for the given object.
        """
        try:
            return api.Cluster.model_validate(obj)
        except pydantic.ValidationError as exc:
            name = obj["metadata"]["name"]
            raise InvalidResource(namespace, name, api.Cluster._meta.kind, name, exc) from exc

    async def _reconcile_cluster(self, namespace, obj, only_cluster = False):
        cluster = self.validate_cluster(namespace, obj)
        # The only cluster in a namespace is the default even if it is not flagged
        if only_cluster and not cluster.spec.is_default_cluster:
            cluster = mark_default(cluster)
        cluster_name = cluster.metadata.name
        logger.info("[%s/%s] reconciling cluster", namespace, cluster_name)
        clients, devices, users = await gather_all(
            self.index.fetch(namespace, cluster, api.Client),
            self.index.fetch(namespace, cluster, api.Device),
            self.index.fetch(namespace, cluster, api.User)
        )
        # Every reference must resolve before anything is rendered
        cluster = await self.resolver.resolve_certificate(namespace, cluster)
        clients = await gather_all(
            *(self.resolver.resolve_client(namespace, cluster_name, c) for c in clients)
        )
        users = await gather_all(
            *(self.resolver.resolve_user(namespace, cluster_name, u) for u in users)
        )
        logger.debug(
            "[%s/%s] resolved %d client(s), %d device(s) and %d user(s)",
            namespace,
            cluster_name,
            len(clients),
            len(devices),
            len(users)
        )
        rendered = self.render(namespace, cluster, clients, devices, users)
        objects = self.builder.build(namespace, cluster, rendered)
        errors = []
        for obj in objects:
            try:
                await self.apply(namespace, cluster_name, obj)
            except ApplyError as exc:
                logger.error("%s", exc)
                errors.append(exc)
        if errors:
            raise ClusterFailed(namespace, cluster_name, errors)
        logger.info("[%s/%s] cluster reconciled", namespace, cluster_name)

    def render(self, namespace, cluster, clients, devices, users):
        """
        Renders the templates for the cluster using the resolved resources.
        """
        base = context.cluster_context(namespace, cluster, self.app_name, self.image)
        return RenderedCluster(
            deployment = self.templates.load(self.templates.deployment, base),
            service = self.templates.load(self.templates.service, base),
            authorize = self.templates.render(
                self.templates.authorize,
                context.authorize_context(base, users, devices)
            ),
            clients = self.templates.render(
                self.templates.clients,
                context.clients_context(base, clients)
            ),
            radiusd = self.templates.render(self.templates.radiusd, base),
            mods = self.templates.render_mods(base)
        )

    async def apply(self, namespace, cluster_name, obj):
        """
        Creates the object, or replaces it if it already exists.
        """
        kind = obj["kind"]
        name = obj["metadata"]["name"]
        if self.dry_run:
            logger.warning(
                "[%s/%s] not applying %s '%s' - running in dry-run mode",
                namespace,
                cluster_name,
                kind,
                name
            )
            self.recorded[(namespace, kind, name)] = obj
            return obj
        try:
            ekresource = await self.ekclient.api(obj["apiVersion"]).resource(kind)
            try:
                existing = await ekresource.fetch(name, namespace = namespace)
            except ApiError as exc:
                if exc.status_code != 404:
                    raise
                logger.info("[%s/%s] creating %s '%s'", namespace, cluster_name, kind, name)
                return await ekresource.create(obj, namespace = namespace)
            else:
                # Stamp the object with the version we read
                obj["metadata"]["resourceVersion"] = existing["metadata"]["resourceVersion"]
                logger.info("[%s/%s] replacing %s '%s'", namespace, cluster_name, kind, name)
                return await ekresource.replace(name, obj, namespace = namespace)
        except (ApiError, httpx.HTTPError) as exc:
            raise ApplyError(namespace, cluster_name, kind, name, exc) from exc
