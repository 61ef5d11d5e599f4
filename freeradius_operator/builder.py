import base64
import dataclasses

from .context import generated_name


def b64encode(value):
    """
    Wrapper around base64.b64encode that handles the encoding and decoding.
    """
    return base64.b64encode(value.encode()).decode()


@dataclasses.dataclass(frozen = True)
class RenderedCluster:
    """
    The rendered templates for a cluster.
    """
    #: The deployment manifest, loaded from YAML
    deployment: dict
    #: The service manifest, loaded from YAML
    service: dict
    #: The rendered authorize file
    authorize: str
    #: The rendered clients.conf
    clients: str
    #: The rendered radiusd.conf
    radiusd: str
    #: The rendered module configurations, indexed by file name
    mods: dict


class ManifestBuilder:
    """
    Builds the objects that are applied for a cluster.
    """
    def __init__(self, app_name, cluster_label = "clusterName"):
        self.app_name = app_name
        self.cluster_label = cluster_label

    def name(self, cluster, suffix):
        return generated_name(self.app_name, cluster.metadata.name, suffix)

    def labels(self, cluster):
        return {
            "app": self.app_name,
            self.cluster_label: cluster.metadata.name,
        }

    def owner_reference(self, cluster):
        """
        Returns a controller owner reference for the cluster.
        """
        return {
            "apiVersion": cluster.api_version,
            "kind": cluster.kind,
            "name": cluster.metadata.name,
            "uid": cluster.metadata.uid,
            "blockOwnerDeletion": True,
            "controller": True,
        }

    def adopt(self, obj, namespace, cluster):
        """
        Sets the namespace, labels and owner of the given object and returns it.
        """
        metadata = obj.setdefault("metadata", {})
        metadata["namespace"] = namespace
        metadata.setdefault("labels", {}).update(self.labels(cluster))
        # The cluster is the only owner of a generated object
        metadata["ownerReferences"] = [self.owner_reference(cluster)]
        return obj

    def config(self, namespace, cluster, rendered):
        return self.adopt(
            {
                "apiVersion": "v1",
                "kind": "ConfigMap",
                "metadata": {
                    "name": self.name(cluster, "config"),
                },
                "data": {
                    "authorize": rendered.authorize,
                    "clients.conf": rendered.clients,
                    "radiusd.conf": rendered.radiusd,
                },
            },
            namespace,
            cluster
        )

    def mods(self, namespace, cluster, rendered):
        return self.adopt(
            {
                "apiVersion": "v1",
                "kind": "ConfigMap",
                "metadata": {
                    "name": self.name(cluster, "mods"),
                },
                "data": dict(rendered.mods),
            },
            namespace,
            cluster
        )

    def certs(self, namespace, cluster):
        """
        Returns the secret holding the TLS material for the cluster.

        The certificate must already be resolved.
        """
        bundle = cluster.spec.certificate.certificates
        return self.adopt(
            {
                "apiVersion": "v1",
                "kind": "Secret",
                "type": "Opaque",
                "metadata": {
                    "name": self.name(cluster, "certs"),
                },
                "data": {
                    "ca": b64encode(bundle.ca or ""),
                    "dh": b64encode(bundle.dh or ""),
                    "server.key": b64encode(bundle.private_key or ""),
                    "server.pem": b64encode(bundle.public_key or ""),
                },
            },
            namespace,
            cluster
        )

    def build(self, namespace, cluster, rendered):
        """
        Returns the objects for the cluster in the order they should be applied.

        The config maps and secret come first so that they exist before the
        deployment that mounts them.
        """
        return [
            self.config(namespace, cluster, rendered),
            self.mods(namespace, cluster, rendered),
            self.certs(namespace, cluster),
            self.adopt(rendered.deployment, namespace, cluster),
            self.adopt(rendered.service, namespace, cluster),
        ]
