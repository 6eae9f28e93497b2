"""Find-or-create provisioning of the AWS resources behind a load-balanced service."""
