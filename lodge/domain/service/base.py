"""Base class for identity domain services."""


class Service:
    """Base class for the identity domain services.

    Services hold the rules that span identities, verification attempts and
    external providers. They receive repositories, settings and strategies
    through their constructor and never open sessions themselves.
    """

    pass
