from kube_custom_resource import CustomResource, schema
from pydantic import Field, model_validator

from .secret_reference import SecretReference


__all__ = ["UserSpec", "User"]


class UserSpec(schema.BaseModel):
    """
    The spec for a user that authenticates with a username and password.
    """

    username: schema.Optional[schema.constr(min_length=1)] = Field(
        None,
        description="The username. If not given, the name of the resource is used.",
    )
    password: schema.Optional[str] = Field(None, description="The password.")
    from_secret_ref: schema.Optional[SecretReference] = Field(
        None,
        description=(
            "Reference to a secret with the keys username and password. "
            "Takes precedence over the inline credentials."
        ),
    )

    @model_validator(mode="after")
    def check_password_given(self):
        if self.password is None and self.from_secret_ref is None:
            raise ValueError("one of password or fromSecretRef is required")
        return self


class User(
    CustomResource,
    printer_columns=[
        {
            "name": "Cluster",
            "type": "string",
            "jsonPath": ".metadata.labels.clusterName",
        },
    ],
):
    """
    A user of a FreeRADIUS cluster.
    """

    spec: UserSpec
