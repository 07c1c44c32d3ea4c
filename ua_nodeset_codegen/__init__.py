"""Generate open62541 server stubs from OPC UA NodeSet2 information models."""

__version__ = "0.1.0"
__author__ = "The ua-nodeset-codegen contributors"
__license__ = "License :: OSI Approved :: MIT License"
__status__ = "Alpha"
