from .namespaces import NamespaceClient as NamespaceClient
