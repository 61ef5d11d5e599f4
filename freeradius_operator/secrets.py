import base64
import binascii
import logging

import httpx

from easykube import ApiError

from .errors import MalformedReference, ReferenceNotFound
from .models import v1alpha1 as api


logger = logging.getLogger(__name__)


#: The keys that must be present in a secret referenced by a client
CLIENT_SECRET_KEYS = ("secret",)
#: The keys that must be present in a secret referenced by a user
USER_SECRET_KEYS = ("username", "password")
#: The keys that must be present in a secret referenced by a cluster certificate
CERTIFICATE_SECRET_KEYS = ("privateKeyPassword", "ca", "dh", "privateKey", "publicKey")


def b64decode(value):
    """
    Wrapper around base64.b64decode that decodes the result as UTF-8.
    """
    return base64.b64decode(value, validate = True).decode()


class SecretResolver:
    """
    Resolves the secret references of clients, users and cluster certificates.

    Resolution never modifies the given resource. When a resource has a reference,
    a copy is returned with the values from the secret in place of the inline
    values, and either every required key is applied or none are.
    """
    def __init__(self, ekclient, allow_cross_namespace = True):
        self.ekclient = ekclient
        self.allow_cross_namespace = allow_cross_namespace

    async def _read(self, namespace, cluster_name, ref, keys):
        """
        Reads the referenced secret and returns the decoded values for the given keys.
        """
        secret_namespace = ref.namespace or namespace
        if secret_namespace != namespace and not self.allow_cross_namespace:
            raise ReferenceNotFound(
                namespace,
                cluster_name,
                secret_namespace,
                ref.name,
                "cross-namespace secret references are not permitted"
            )
        eksecrets = await self.ekclient.api("v1").resource("secrets")
        try:
            secret = await eksecrets.fetch(ref.name, namespace = secret_namespace)
        except (ApiError, httpx.HTTPError) as exc:
            raise ReferenceNotFound(
                namespace,
                cluster_name,
                secret_namespace,
                ref.name,
                exc
            ) from exc
        data = secret.get("data") or {}
        values = {}
        for key in keys:
            if key not in data:
                raise MalformedReference(
                    namespace,
                    cluster_name,
                    secret_namespace,
                    ref.name,
                    key,
                    "key is missing"
                )
            try:
                values[key] = b64decode(data[key])
            except (binascii.Error, UnicodeDecodeError, TypeError) as exc:
                raise MalformedReference(
                    namespace,
                    cluster_name,
                    secret_namespace,
                    ref.name,
                    key,
                    exc
                ) from exc
        return values

    async def resolve_client(self, namespace, cluster_name, client):
        """
        Returns the client with its shared secret resolved.
        """
        ref = client.spec.from_secret_ref
        if not ref:
            return client
        logger.debug(
            "[%s/%s] loading secret for client %s from %s",
            namespace,
            cluster_name,
            client.metadata.name,
            ref.name
        )
        values = await self._read(namespace, cluster_name, ref, CLIENT_SECRET_KEYS)
        spec = client.spec.model_copy(update = { "secret": values["secret"] })
        return client.model_copy(update = { "spec": spec })

    async def resolve_user(self, namespace, cluster_name, user):
        """
        Returns the user with its credentials resolved.
        """
        ref = user.spec.from_secret_ref
        if not ref:
            return user
        logger.debug(
            "[%s/%s] loading credentials for user %s from %s",
            namespace,
            cluster_name,
            user.metadata.name,
            ref.name
        )
        values = await self._read(namespace, cluster_name, ref, USER_SECRET_KEYS)
        spec = user.spec.model_copy(
            update = {
                "username": values["username"],
                "password": values["password"],
            }
        )
        return user.model_copy(update = { "spec": spec })

    async def resolve_certificate(self, namespace, cluster):
        """
        Returns the cluster with its certificate bundle resolved.
        """
        certificate = cluster.spec.certificate
        ref = certificate.from_secret_ref
        if not ref:
            return cluster
        logger.debug(
            "[%s/%s] loading certificate from %s",
            namespace,
            cluster.metadata.name,
            ref.name
        )
        values = await self._read(
            namespace,
            cluster.metadata.name,
            ref,
            CERTIFICATE_SECRET_KEYS
        )
        bundle = api.CertificateBundle(
            ca = values["ca"],
            dh = values["dh"],
            privateKey = values["privateKey"],
            publicKey = values["publicKey"]
        )
        certificate = certificate.model_copy(
            update = {
                "private_key_password": values["privateKeyPassword"],
                "certificates": bundle,
            }
        )
        spec = cluster.spec.model_copy(update = { "certificate": certificate })
        return cluster.model_copy(update = { "spec": spec })
