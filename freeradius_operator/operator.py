import asyncio
import logging
import sys

import kopf

from easykube import Configuration
from kube_custom_resource import CustomResourceRegistry

from . import models
from .config import settings
from .errors import ReconcileError
from .models import v1alpha1 as api
from .reconciler import Reconciler
from .template import TemplateSet

logger = logging.getLogger(__name__)


# Create a registry of custom resources and populate it from the models module
registry = CustomResourceRegistry(settings.api_group, settings.crd_categories)
registry.discover_models(models)


@kopf.on.startup()
async def apply_settings(memo, **kwargs):
    """
    Apply kopf settings, register the CRDs and create the reconciler.
    """
    kopf_settings = kwargs["settings"]
    kopf_settings.persistence.finalizer = f"{settings.annotation_prefix}/finalizer"
    kopf_settings.persistence.progress_storage = kopf.AnnotationsProgressStorage(
        prefix = settings.annotation_prefix
    )
    kopf_settings.persistence.diffbase_storage = kopf.AnnotationsDiffBaseStorage(
        prefix = settings.annotation_prefix,
        key = "last-handled-configuration",
    )
    kopf_settings.watching.client_timeout = settings.watch_timeout
    # Create an easykube client from the environment
    ekclient = (
        Configuration
            .from_environment()
            .async_client(default_field_manager = settings.easykube_field_manager)
    )
    memo.ekclient = ekclient
    # Apply the CRDs
    for crd in registry:
        try:
            await ekclient.apply_object(crd.kubernetes_resource(), force = True)
        except Exception:
            logger.exception("error applying CRD %s.%s - exiting", crd.plural_name, crd.api_group)
            sys.exit(1)
    # Give Kubernetes a chance to create the APIs for the CRDs
    await asyncio.sleep(0.5)
    # Check to see if the APIs for the CRDs are up
    # If they are not, the kopf watches will not start properly so we exit and get restarted
    for crd in registry:
        preferred_version = next(k for k, v in crd.versions.items() if v.storage)
        api_version = f"{crd.api_group}/{preferred_version}"
        try:
            _ = await ekclient.get(f"/apis/{api_version}/{crd.plural_name}")
        except Exception:
            logger.exception(
                "api for %s.%s not available - exiting",
                crd.plural_name,
                crd.api_group
            )
            sys.exit(1)
    # The templates are loaded once and shared by every reconciliation
    templates = TemplateSet(settings.templates_directory)
    memo.reconciler = Reconciler(
        ekclient,
        templates,
        api_group = settings.api_group,
        app_name = settings.app_name,
        image = settings.image,
        cluster_label = settings.cluster_label,
        dry_run = settings.dry_run,
        allow_cross_namespace_secret_refs = settings.allow_cross_namespace_secret_refs
    )
    if settings.dry_run:
        logger.warning("running in dry-run mode - generated objects will not be applied")


@kopf.on.cleanup()
async def on_cleanup(memo, **kwargs):
    """
    Runs on operator shutdown.
    """
    ekclient = getattr(memo, "ekclient", None)
    if ekclient is not None:
        await ekclient.aclose()


def model_handler(model, register_fn, /, **kwargs):
    """
    Decorator that registers a handler with kopf for the specified model.
    """
    api_version = f"{settings.api_group}/{model._meta.version}"
    def decorator(func):
        return register_fn(
            api_version,
            model._meta.plural_name,
            id = f"{func.__name__}-{model._meta.plural_name}",
            **kwargs
        )(func)
    return decorator


async def reconcile_namespace(memo, namespace, logger):
    """
    Reconciles the namespace, logging rather than raising reconciliation errors.

    Reconciliation is not retried here, as the next event or resync will try again.
    """
    try:
        await memo.reconciler.reconcile(namespace)
    except ReconcileError as exc:
        logger.error(str(exc))


@model_handler(api.Cluster, kopf.on.event)
@model_handler(api.Client, kopf.on.event)
@model_handler(api.Device, kopf.on.event)
@model_handler(api.User, kopf.on.event)
async def on_resource_event(type, name, namespace, memo, logger, **kwargs):
    """
    Executes on any event for a cluster, client, device or user.
    """
    logger.debug("%s event for %s - reconciling namespace", type or "initial", name)
    await reconcile_namespace(memo, namespace, logger)


@model_handler(
    api.Cluster,
    kopf.timer,
    interval = settings.resync_interval,
    idle = settings.resync_interval
)
async def resync_cluster(namespace, memo, logger, **kwargs):
    """
    Periodically reconciles the namespace of each cluster.
    """
    await reconcile_namespace(memo, namespace, logger)
