"""Shared fixtures."""

import pytest

from fake_aws import FakeAWS


@pytest.fixture
def aws():
    """In-memory AWS with one VPC spread over three availability zones."""
    fake = FakeAWS(certificate_domains=["shop.example.com", "api.example.com"])
    fake.ec2.add_subnet("subnet-a", "us-east-1a")
    fake.ec2.add_subnet("subnet-b", "us-east-1b")
    fake.ec2.add_subnet("subnet-a2", "us-east-1a")
    fake.ec2.add_subnet("subnet-c", "us-east-1c")
    fake.ec2.add_subnet("subnet-other", "us-east-1a", vpc_id="vpc-2")
    return fake
