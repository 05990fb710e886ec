"""
General-purpose helpers not related to the reflection itself
(neither to the reconciler nor to the clients nor to the structs).

Helpers do not depend on anything else in the package. As a rule of thumb,
they MUST be abstracted to such an extent that they could be extracted
as reusable libraries.
"""
