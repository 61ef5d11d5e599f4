import base64
import unittest

from freeradius_operator.builder import ManifestBuilder, RenderedCluster
from freeradius_operator.models import v1alpha1 as api

from .util import API_VERSION, cluster_obj


class TestManifestBuilder(unittest.TestCase):
    # make debugging dict comparisons easier
    maxDiff = None

    def setUp(self):
        self.builder = ManifestBuilder("freeradius")
        self.cluster = api.Cluster.model_validate(cluster_obj("main", uid = "1234"))
        self.rendered = RenderedCluster(
            deployment = {
                "apiVersion": "apps/v1",
                "kind": "Deployment",
                "metadata": { "name": "freeradius-main", "labels": { "tier": "auth" } },
            },
            service = {
                "apiVersion": "v1",
                "kind": "Service",
                "metadata": { "name": "freeradius-main" },
            },
            authorize = "authorize content",
            clients = "clients content",
            radiusd = "radiusd content",
            mods = { "eap": "eap content", "files": "files content" }
        )

    def build(self):
        return self.builder.build("radius", self.cluster, self.rendered)

    def test_objects_in_apply_order(self):
        objects = self.build()

        self.assertEqual(
            [(o["kind"], o["metadata"]["name"]) for o in objects],
            [
                ("ConfigMap", "freeradius-main-config-generated"),
                ("ConfigMap", "freeradius-main-mods-generated"),
                ("Secret", "freeradius-main-certs-generated"),
                ("Deployment", "freeradius-main"),
                ("Service", "freeradius-main"),
            ]
        )

    def test_every_object_is_labelled_and_owned(self):
        for obj in self.build():
            metadata = obj["metadata"]
            self.assertEqual(metadata["namespace"], "radius")
            self.assertEqual(metadata["labels"]["app"], "freeradius")
            self.assertEqual(metadata["labels"]["clusterName"], "main")
            self.assertEqual(
                metadata["ownerReferences"],
                [
                    {
                        "apiVersion": API_VERSION,
                        "kind": "Cluster",
                        "name": "main",
                        "uid": "1234",
                        "blockOwnerDeletion": True,
                        "controller": True,
                    },
                ]
            )

    def test_rendered_labels_are_kept(self):
        deployment = self.build()[3]

        self.assertEqual(deployment["metadata"]["labels"]["tier"], "auth")

    def test_config_data(self):
        config, mods, _, _, _ = self.build()

        self.assertDictEqual(
            config["data"],
            {
                "authorize": "authorize content",
                "clients.conf": "clients content",
                "radiusd.conf": "radiusd content",
            }
        )
        self.assertDictEqual(
            mods["data"],
            { "eap": "eap content", "files": "files content" }
        )

    def test_certs_are_encoded(self):
        certs = self.build()[2]

        self.assertEqual(certs["type"], "Opaque")
        self.assertDictEqual(
            {
                key: base64.b64decode(value).decode()
                for key, value in certs["data"].items()
            },
            {
                "ca": "CA",
                "dh": "DH",
                "server.key": "KEY",
                "server.pem": "PEM",
            }
        )
