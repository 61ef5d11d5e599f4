from kube_custom_resource import CustomResource, schema
from pydantic import Field, model_validator

from .secret_reference import SecretReference


__all__ = [
    "ServiceSpec",
    "CertificateBundle",
    "CertificateSpec",
    "ClusterSpec",
    "Cluster",
]


class ServiceSpec(schema.BaseModel):
    """
    The spec for the service that exposes the FreeRADIUS pods.
    """

    type: schema.constr(min_length=1) = Field(
        "ClusterIP", description="The type of the service."
    )
    load_balancer_ip: schema.Optional[schema.constr(min_length=1)] = Field(
        None,
        alias="loadBalancerIP",
        description="The IP address to request for a load balancer service.",
    )


class CertificateBundle(schema.BaseModel):
    """
    The PEM-encoded TLS material for the FreeRADIUS server.
    """

    ca: schema.Optional[str] = Field(
        None, description="The certificate of the certificate authority."
    )
    dh: schema.Optional[str] = Field(
        None, description="The Diffie-Hellman parameters."
    )
    private_key: schema.Optional[str] = Field(
        None, description="The private key of the server."
    )
    public_key: schema.Optional[str] = Field(
        None, description="The public certificate of the server."
    )


class CertificateSpec(schema.BaseModel):
    """
    The spec for the server certificate, given inline or via a secret.
    """

    from_secret_ref: schema.Optional[SecretReference] = Field(
        None,
        description=(
            "Reference to a secret with the keys privateKeyPassword, ca, dh, "
            "privateKey and publicKey. Takes precedence over inline values."
        ),
    )
    private_key_password: schema.Optional[str] = Field(
        None, description="The password for the private key."
    )
    certificates: schema.Optional[CertificateBundle] = Field(
        None, description="The inline certificate bundle."
    )

    @model_validator(mode="after")
    def check_source_given(self):
        """
        Ensures that the certificate comes from somewhere.
        """
        if self.from_secret_ref is None and self.certificates is None:
            raise ValueError("one of fromSecretRef or certificates is required")
        return self


class ClusterSpec(schema.BaseModel):
    """
    The spec for a FreeRADIUS cluster.
    """

    is_default_cluster: schema.Optional[bool] = Field(
        None,
        description=(
            "Indicates if the cluster receives clients, devices and users that "
            "have no clusterName label. When there is only one cluster in the "
            "namespace, it is the default."
        ),
    )
    replicas: schema.conint(ge=0) = Field(
        2, description="The number of FreeRADIUS replicas."
    )
    service: ServiceSpec = Field(
        default_factory=ServiceSpec,
        description="The service that exposes the cluster.",
    )
    default_vlan: schema.Optional[schema.conint(ge=0)] = Field(
        None, description="The VLAN to assign when no device matches."
    )
    certificate: CertificateSpec = Field(
        ..., description="The server certificate for the cluster."
    )


class Cluster(
    CustomResource,
    printer_columns=[
        {
            "name": "Default",
            "type": "boolean",
            "jsonPath": ".spec.isDefaultCluster",
        },
        {
            "name": "Replicas",
            "type": "integer",
            "jsonPath": ".spec.replicas",
        },
        {
            "name": "Service Type",
            "type": "string",
            "jsonPath": ".spec.service.type",
        },
    ],
):
    """
    A FreeRADIUS cluster.
    """

    spec: ClusterSpec
