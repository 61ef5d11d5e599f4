"""
Builders for the contexts that templates are rendered with.

Each template kind has a context with a fixed schema, so templates only ever see
the fields defined here, regardless of what else is on the resources.
"""

import typing as t

from pydantic import BaseModel


class ServiceContext(BaseModel):
    type: str
    load_balancer_ip: t.Optional[str] = None


class ClusterContext(BaseModel):
    """
    The context for the deployment, service, radiusd.conf and module templates.
    """
    #: The application name, used for labels and as the prefix of object names
    app_name: str
    #: The FreeRADIUS image
    image: str
    #: The namespace being reconciled
    namespace: str
    #: The name of the cluster
    cluster_name: str
    replicas: int
    service: ServiceContext
    default_vlan: t.Optional[int] = None
    private_key_password: t.Optional[str] = None
    #: The names of the generated objects, for mounting into the pods
    config_name: str
    mods_name: str
    certs_name: str


class DeviceItem(BaseModel):
    name: str
    #: MAC addresses with the separators removed
    mac_addresses: list[str]
    vlan: int


class UserItem(BaseModel):
    name: str
    username: t.Optional[str] = None
    password: t.Optional[str] = None


class ClientItem(BaseModel):
    name: str
    ip_address: str
    secret: t.Optional[str] = None


class AuthorizeContext(ClusterContext):
    """
    The context for the authorize template.
    """
    users: list[UserItem]
    devices: list[DeviceItem]


class ClientsContext(ClusterContext):
    """
    The context for the clients.conf template.
    """
    clients: list[ClientItem]


def normalise_mac_address(mac_address):
    """
    Removes the colon separators from a MAC address, preserving case.
    """
    return mac_address.replace(":", "")


def generated_name(app_name, cluster_name, suffix):
    """
    Returns the name of a generated object for the cluster.
    """
    return f"{app_name}-{cluster_name}-{suffix}-generated"


def cluster_context(namespace, cluster, app_name, image):
    cluster_name = cluster.metadata.name
    spec = cluster.spec
    return ClusterContext(
        app_name = app_name,
        image = image,
        namespace = namespace,
        cluster_name = cluster_name,
        replicas = spec.replicas,
        service = ServiceContext(
            type = spec.service.type,
            load_balancer_ip = spec.service.load_balancer_ip
        ),
        default_vlan = spec.default_vlan,
        private_key_password = spec.certificate.private_key_password,
        config_name = generated_name(app_name, cluster_name, "config"),
        mods_name = generated_name(app_name, cluster_name, "mods"),
        certs_name = generated_name(app_name, cluster_name, "certs")
    )


def device_item(device):
    return DeviceItem(
        name = device.metadata.name,
        mac_addresses = [
            normalise_mac_address(mac)
            for mac in device.spec.mac_addresses
        ],
        vlan = device.spec.vlan
    )


def user_item(user):
    return UserItem(
        name = user.metadata.name,
        username = user.spec.username,
        password = user.spec.password
    )


def client_item(client):
    return ClientItem(
        name = client.metadata.name,
        ip_address = client.spec.ip_address,
        secret = client.spec.secret
    )


def authorize_context(base, users, devices):
    """
    Returns the context for the authorize template, with users and devices in the
    order they are given.
    """
    return AuthorizeContext(
        **dict(base),
        users = [user_item(user) for user in users],
        devices = [device_item(device) for device in devices]
    )


def clients_context(base, clients):
    """
    Returns the context for the clients.conf template, with clients in the order
    they are given.
    """
    return ClientsContext(
        **dict(base),
        clients = [client_item(client) for client in clients]
    )
