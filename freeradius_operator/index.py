import logging

import httpx
import pydantic

from easykube import ABSENT, ApiError

from .errors import FetchError
from .models import v1alpha1 as api


logger = logging.getLogger(__name__)


class ResourceIndex:
    """
    Finds the clusters in a namespace and the clients, devices and users that
    belong to each cluster.
    """
    def __init__(self, ekclient, api_group, cluster_label = "clusterName"):
        self.ekclient = ekclient
        self.api_group = api_group
        self.cluster_label = cluster_label

    async def ekresource_for_model(self, model):
        """
        Returns an easykube resource for the given model.
        """
        ekapi = self.ekclient.api(f"{self.api_group}/{model._meta.version}")
        return await ekapi.resource(model._meta.plural_name)

    async def _list(self, model, namespace, **params):
        ekresource = await self.ekresource_for_model(model)
        return [
            model.model_validate(obj)
            async for obj in ekresource.list(namespace = namespace, **params)
        ]

    async def list_clusters(self, namespace):
        """
        Returns the raw cluster objects in the namespace, in list order.

        The clusters are not validated here so that one invalid cluster cannot
        prevent the others from being reconciled.
        """
        try:
            ekresource = await self.ekresource_for_model(api.Cluster)
            return [obj async for obj in ekresource.list(namespace = namespace)]
        except (ApiError, httpx.HTTPError) as exc:
            raise FetchError(namespace, None, api.Cluster._meta.kind, exc) from exc

    async def fetch(self, namespace, cluster, model):
        """
        Returns the instances of the model that belong to the given cluster.

        Instances labelled with the cluster name always belong to it. Instances
        with no cluster label only belong to the cluster if it is the default.
        """
        cluster_name = cluster.metadata.name
        kind = model._meta.kind
        try:
            items = await self._list(
                model,
                namespace,
                labels = { self.cluster_label: cluster_name }
            )
            if cluster.spec.is_default_cluster:
                # Objects that have no cluster label at all
                items.extend(
                    await self._list(
                        model,
                        namespace,
                        labels = { self.cluster_label: ABSENT }
                    )
                )
        except (ApiError, httpx.HTTPError, pydantic.ValidationError) as exc:
            raise FetchError(namespace, cluster_name, kind, exc) from exc
        logger.debug(
            "[%s/%s] found %d %s resource(s)",
            namespace,
            cluster_name,
            len(items),
            kind
        )
        return items
