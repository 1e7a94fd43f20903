"""AWS region catalogue used by the region picker."""

import boto3

DEFAULT_REGION = 'us-east-1'
PARTITIONS = ('aws', 'aws-cn', 'aws-us-gov')


def list_regions(partition_name='aws'):
    """Get the sorted region codes of an AWS partition from boto3's endpoint data."""
    session = boto3.session.Session()
    return sorted(session.get_available_regions('ec2', partition_name=partition_name))


def is_known_region(region):
    """Check a region code against every partition boto3 knows about."""
    if not region:
        return False
    return any(region in list_regions(partition) for partition in PARTITIONS)
