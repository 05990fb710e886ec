"""
The reflection of ConfigMaps & Secrets from a source object into namespaces.

Leaves first: the annotation codec (:mod:`annotations`), the kind adapters
(:mod:`kinds`), the projection builder (:mod:`projections`), the object store
port (:mod:`stores`), the reconciler (:mod:`reconciling`), and the routing
predicates for the external watch layer (:mod:`routing`).
"""
