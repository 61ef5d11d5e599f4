import typing as t

from configomatic import (
    Configuration as BaseConfiguration,
)
from configomatic import (
    LoggingConfiguration,
)
from pydantic import (
    DirectoryPath,
    Field,
    conint,
    constr,
)


class Configuration(
    BaseConfiguration,
    default_path="/etc/freeradius-operator/config.yaml",
    path_env_var="FREERADIUS_OPERATOR_CONFIG",
    env_prefix="FREERADIUS_OPERATOR",
):
    """
    Top-level configuration model.
    """

    #: The logging configuration
    logging: LoggingConfiguration = Field(default_factory=LoggingConfiguration)

    #: The API group of the FreeRADIUS CRDs
    api_group: constr(min_length=1) = "freeradius.org"
    #: A list of categories to place CRDs into
    crd_categories: list[constr(min_length=1)] = Field(
        default_factory=lambda: ["freeradius"]
    )

    #: The prefix to use for operator annotations
    annotation_prefix: str = "freeradius.org"

    #: The application name, used as the prefix for generated objects and as
    #: the value of the app label
    app_name: constr(min_length=1) = "freeradius"
    #: The label on clients, devices and users that names their cluster
    cluster_label: constr(min_length=1) = "clusterName"

    #: The FreeRADIUS image to use for deployments
    image: constr(min_length=1) = "docker.io/freeradius/freeradius-server:3.2.3"

    #: A directory to load templates from
    #: By default, the templates that ship with the operator are used
    templates_directory: t.Optional[DirectoryPath] = None

    #: When true, generated objects are recorded and logged but never applied
    dry_run: bool = False

    #: Indicates whether secret references may point at another namespace
    allow_cross_namespace_secret_refs: bool = True

    #: The number of seconds between periodic resyncs of each namespace
    resync_interval: conint(gt=0) = 300

    #: The amount of time (seconds) before a watch is forcefully restarted
    watch_timeout: conint(gt=0) = 600

    #: The field manager name to use for writes
    easykube_field_manager: constr(min_length=1) = "freeradius-operator"


settings = Configuration()
