import asyncio
import base64
import copy

from easykube import ABSENT, PRESENT, ApiError


API_VERSION = "freeradius.org/v1alpha1"


class FakeApiError(ApiError):
    """
    An API error with the given status code that does not need an HTTP response.
    """
    def __init__(self, status_code, message = None):
        Exception.__init__(self, message or f"status {status_code}")
        self._status_code = status_code

    @property
    def status_code(self):
        return self._status_code

    def __str__(self):
        return self.args[0]


def plural(name):
    name = name.lower()
    return name if name.endswith("s") else f"{name}s"


def b64(value):
    return base64.b64encode(value.encode()).decode()


def matches(obj, labels):
    obj_labels = obj["metadata"].get("labels") or {}
    for key, value in (labels or {}).items():
        if value is ABSENT:
            if key in obj_labels:
                return False
        elif value is PRESENT:
            if key not in obj_labels:
                return False
        elif obj_labels.get(key) != value:
            return False
    return True


class FakeClient:
    """
    In-memory stand-in for an easykube async client.
    """
    def __init__(self):
        self.objects = {}
        self.calls = []
        self.failures = {}
        #: The label selectors passed to list, as (resource, labels)
        self.selectors = []
        self._next_version = 1

    def api(self, api_version):
        return FakeApi(self)

    def add(self, resource, obj):
        obj = copy.deepcopy(obj)
        metadata = obj["metadata"]
        metadata.setdefault("resourceVersion", str(self._bump()))
        key = (plural(resource), metadata.get("namespace"), metadata["name"])
        self.objects[key] = obj
        return obj

    def get(self, resource, namespace, name):
        return self.objects.get((plural(resource), namespace, name))

    def fail(self, verb, resource, name = None, exc = None):
        """
        Makes the given verb fail for the resource, or for one object of the resource.
        """
        self.failures[(verb, plural(resource), name)] = exc or FakeApiError(500)

    def count(self, verb, resource = None):
        return len([
            call
            for call in self.calls
            if call[0] == verb and (resource is None or call[1] == plural(resource))
        ])

    def _bump(self):
        version = self._next_version
        self._next_version += 1
        return version

    async def _call(self, verb, resource, namespace, name = None):
        self.calls.append((verb, resource, namespace, name))
        # Give other tasks a chance to run, as a real request would
        await asyncio.sleep(0)
        for key in [(verb, resource, name), (verb, resource, None)]:
            if key in self.failures:
                raise self.failures[key]


class FakeApi:
    def __init__(self, client):
        self.client = client

    async def resource(self, name):
        return FakeResource(self.client, plural(name))


class FakeResource:
    def __init__(self, client, name):
        self.client = client
        self.name = name

    async def list(self, namespace = None, labels = None):
        await self.client._call("list", self.name, namespace)
        self.client.selectors.append((self.name, labels))
        for (resource, obj_namespace, _), obj in list(self.client.objects.items()):
            if resource != self.name or obj_namespace != namespace:
                continue
            if matches(obj, labels):
                yield copy.deepcopy(obj)

    async def fetch(self, name, namespace = None):
        await self.client._call("fetch", self.name, namespace, name)
        obj = self.client.objects.get((self.name, namespace, name))
        if obj is None:
            raise FakeApiError(404, f"{self.name} '{name}' not found")
        return copy.deepcopy(obj)

    async def create(self, obj, namespace = None):
        name = obj["metadata"]["name"]
        await self.client._call("create", self.name, namespace, name)
        if (self.name, namespace, name) in self.client.objects:
            raise FakeApiError(409, f"{self.name} '{name}' already exists")
        return self.client.add(self.name, obj)

    async def replace(self, name, obj, namespace = None):
        await self.client._call("replace", self.name, namespace, name)
        existing = self.client.objects.get((self.name, namespace, name))
        if existing is None:
            raise FakeApiError(404, f"{self.name} '{name}' not found")
        if obj["metadata"].get("resourceVersion") != existing["metadata"]["resourceVersion"]:
            raise FakeApiError(409, f"{self.name} '{name}' has been modified")
        obj = copy.deepcopy(obj)
        obj["metadata"]["resourceVersion"] = str(self.client._bump())
        return self.client.add(self.name, obj)


def cluster_obj(name, namespace = "radius", labels = None, uid = None, **spec):
    spec.setdefault(
        "certificate",
        {
            "privateKeyPassword": "whatever",
            "certificates": {
                "ca": "CA",
                "dh": "DH",
                "privateKey": "KEY",
                "publicKey": "PEM",
            },
        }
    )
    return {
        "apiVersion": API_VERSION,
        "kind": "Cluster",
        "metadata": {
            "name": name,
            "namespace": namespace,
            "uid": uid or f"uid-{name}",
            "labels": labels or {},
        },
        "spec": spec,
    }


def dependent_obj(kind, name, cluster_name = None, namespace = "radius", **spec):
    labels = { "clusterName": cluster_name } if cluster_name else {}
    return {
        "apiVersion": API_VERSION,
        "kind": kind,
        "metadata": {
            "name": name,
            "namespace": namespace,
            "uid": f"uid-{name}",
            "labels": labels,
        },
        "spec": spec,
    }


def client_obj(name, cluster_name = None, namespace = "radius", **spec):
    spec.setdefault("ipAddress", "10.0.0.1")
    if "fromSecretRef" not in spec:
        spec.setdefault("secret", "testing123")
    return dependent_obj("Client", name, cluster_name, namespace, **spec)


def device_obj(name, cluster_name = None, namespace = "radius", **spec):
    spec.setdefault("macAddresses", ["AA:BB:CC:DD:EE:FF"])
    spec.setdefault("vlan", 10)
    return dependent_obj("Device", name, cluster_name, namespace, **spec)


def user_obj(name, cluster_name = None, namespace = "radius", **spec):
    return dependent_obj("User", name, cluster_name, namespace, **spec)


def secret_obj(name, namespace = "radius", **data):
    return {
        "apiVersion": "v1",
        "kind": "Secret",
        "metadata": {
            "name": name,
            "namespace": namespace,
        },
        "data": { key: b64(value) for key, value in data.items() },
    }
