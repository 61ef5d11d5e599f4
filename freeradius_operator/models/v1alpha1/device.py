from kube_custom_resource import CustomResource, schema
from pydantic import Field


__all__ = ["DeviceSpec", "Device"]


class DeviceSpec(schema.BaseModel):
    """
    The spec for a device that is authorised by MAC address.
    """

    mac_addresses: list[schema.constr(min_length=1)] = Field(
        ...,
        min_length=1,
        description="The MAC addresses of the device, e.g. AA:BB:CC:DD:EE:FF.",
    )
    vlan: schema.conint(ge=0) = Field(
        ..., description="The VLAN to assign to the device."
    )


class Device(
    CustomResource,
    printer_columns=[
        {
            "name": "VLAN",
            "type": "integer",
            "jsonPath": ".spec.vlan",
        },
        {
            "name": "Cluster",
            "type": "string",
            "jsonPath": ".metadata.labels.clusterName",
        },
    ],
):
    """
    A device known to a FreeRADIUS cluster.
    """

    spec: DeviceSpec
