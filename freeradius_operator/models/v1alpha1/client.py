from kube_custom_resource import CustomResource, schema
from pydantic import Field, model_validator

from .secret_reference import SecretReference


__all__ = ["ClientSpec", "Client"]


class ClientSpec(schema.BaseModel):
    """
    The spec for a RADIUS client, e.g. an access point or a switch.
    """

    ip_address: schema.constr(min_length=1) = Field(
        ..., description="The IP address or network of the client."
    )
    secret: schema.Optional[str] = Field(
        None, description="The shared secret for the client."
    )
    from_secret_ref: schema.Optional[SecretReference] = Field(
        None,
        description=(
            "Reference to a secret with the key secret. "
            "Takes precedence over the inline secret."
        ),
    )

    @model_validator(mode="after")
    def check_secret_given(self):
        if self.secret is None and self.from_secret_ref is None:
            raise ValueError("one of secret or fromSecretRef is required")
        return self


class Client(
    CustomResource,
    printer_columns=[
        {
            "name": "IP Address",
            "type": "string",
            "jsonPath": ".spec.ipAddress",
        },
        {
            "name": "Cluster",
            "type": "string",
            "jsonPath": ".metadata.labels.clusterName",
        },
    ],
):
    """
    A RADIUS client of a FreeRADIUS cluster.
    """

    spec: ClientSpec
