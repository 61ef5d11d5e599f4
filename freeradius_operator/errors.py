class ReconcileError(Exception):
    """
    Base class for errors raised while reconciling a namespace.
    """
    def __init__(self, message, namespace, cluster = None):
        self.namespace = namespace
        self.cluster = cluster
        if cluster:
            super().__init__(f"[{namespace}/{cluster}] {message}")
        else:
            super().__init__(f"[{namespace}] {message}")


class FetchError(ReconcileError):
    """
    Raised when listing resources fails.
    """
    def __init__(self, namespace, cluster, kind, reason):
        self.kind = kind
        super().__init__(f"failed to fetch {kind}: {reason}", namespace, cluster)


class ReferenceNotFound(ReconcileError):
    """
    Raised when the secret targeted by a reference cannot be read.
    """
    def __init__(self, namespace, cluster, secret_namespace, secret_name, reason):
        self.secret_namespace = secret_namespace
        self.secret_name = secret_name
        super().__init__(
            f"could not read secret {secret_namespace}/{secret_name}: {reason}",
            namespace,
            cluster
        )


class MalformedReference(ReconcileError):
    """
    Raised when a referenced secret is missing a required key or the value
    cannot be decoded.
    """
    def __init__(self, namespace, cluster, secret_namespace, secret_name, key, reason):
        self.secret_namespace = secret_namespace
        self.secret_name = secret_name
        self.key = key
        super().__init__(
            f"invalid key '{key}' in secret {secret_namespace}/{secret_name}: {reason}",
            namespace,
            cluster
        )


class ApplyError(ReconcileError):
    """
    Raised when creating or replacing a generated object fails.
    """
    def __init__(self, namespace, cluster, kind, name, reason):
        self.kind = kind
        self.name = name
        super().__init__(f"failed to apply {kind} '{name}': {reason}", namespace, cluster)


class ClusterFailed(ReconcileError):
    """
    Raised when one or more generated objects for a cluster could not be applied.
    """
    def __init__(self, namespace, cluster, errors):
        self.errors = list(errors)
        super().__init__(
            f"{len(self.errors)} object(s) failed to apply",
            namespace,
            cluster
        )


class PassFailed(ReconcileError):
    """
    Raised at the end of a reconciliation pass in which one or more clusters failed.
    """
    def __init__(self, namespace, errors):
        self.errors = list(errors)
        clusters = ", ".join(sorted(str(getattr(e, "cluster", None)) for e in self.errors))
        super().__init__(
            f"reconciliation failed for {len(self.errors)} cluster(s): {clusters}",
            namespace
        )


class InvalidResource(ReconcileError):
    """
    Raised when a custom resource does not pass validation.
    """
    def __init__(self, namespace, cluster, kind, name, reason):
        self.kind = kind
        self.name = name
        super().__init__(f"invalid {kind} '{name}': {reason}", namespace, cluster)
