"""
PodFS - Pod Filesystem Bridge

Browse, read, write and delete files inside a running container by
shelling out to kubectl exec. No agent is installed in the container;
only the usual shell tools (ls, cat, stat, head, rm) are required.

Architecture:
- Each module is self-contained with clear interfaces
- kubectl is the only transport
- Every public operation returns a success/error envelope

Modules:
- executor: kubectl invocation, credential discovery, streaming upload
- filesystem: listing parser, binary detection, public operations
- api: request/response models
- auth: optional API key check for the HTTP surface
"""

__version__ = "1.0.0"
