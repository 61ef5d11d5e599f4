import logging
import types

import jinja2
import yaml


logger = logging.getLogger(__name__)


#: The names of the per-cluster templates
DEPLOYMENT_TEMPLATE = "manifests/deployment.yaml"
SERVICE_TEMPLATE = "manifests/service.yaml"
AUTHORIZE_TEMPLATE = "authorize"
CLIENTS_TEMPLATE = "clients.conf"
RADIUSD_TEMPLATE = "radiusd.conf"

#: The directory that holds the module configurations
MODS_DIRECTORY = "mods-enabled"


class TemplateSet:
    """
    The templates used to generate the objects for a cluster.

    All templates are loaded and compiled when the set is created and are never
    reloaded, so a running operator renders with the templates it started with.
    """
    def __init__(self, directory = None):
        if directory:
            loader = jinja2.FileSystemLoader(str(directory))
        else:
            # Use the templates that ship with this package
            loader = jinja2.PackageLoader(self.__module__.rsplit(".", maxsplit = 1)[0])
        self.env = jinja2.Environment(
            loader = loader,
            autoescape = False,
            keep_trailing_newline = True,
            trim_blocks = True,
            lstrip_blocks = True
        )
        self.deployment = self.env.get_template(DEPLOYMENT_TEMPLATE)
        self.service = self.env.get_template(SERVICE_TEMPLATE)
        self.authorize = self.env.get_template(AUTHORIZE_TEMPLATE)
        self.clients = self.env.get_template(CLIENTS_TEMPLATE)
        self.radiusd = self.env.get_template(RADIUSD_TEMPLATE)
        self.mods = types.MappingProxyType({
            name.split("/", maxsplit = 1)[1]: self.env.get_template(name)
            for name in sorted(self.env.list_templates())
            if name.startswith(f"{MODS_DIRECTORY}/")
        })
        logger.info(
            "loaded templates with %d module configuration(s): %s",
            len(self.mods),
            ", ".join(self.mods)
        )

    @staticmethod
    def render(template, context):
        """
        Render the template with the given context and return the result.
        """
        return template.render(**context.model_dump())

    @classmethod
    def load(cls, template, context):
        """
        Render the template with the given context, load the result as YAML and
        return it.
        """
        return yaml.safe_load(cls.render(template, context))

    def render_mods(self, context):
        """
        Render every module configuration with the given context and return a
        dictionary of file name to content.
        """
        return {
            name: self.render(template, context)
            for name, template in self.mods.items()
        }
