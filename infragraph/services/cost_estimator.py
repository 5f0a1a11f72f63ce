from __future__ import annotations
from typing import Iterable, List, Optional, Dict

from infragraph.models import GraphNode

# Rough monthly USD list prices for a small default configuration of each type.
# Keys are lower-cased resource types; lookups are case-insensitive so both the
# static scan ("aws:ec2/natgateway:NatGateway") and the engine
# ("aws:ec2/natGateway:NatGateway") hit the same entry.
MONTHLY_COST: Dict[str, float] = {
    # AWS compute
    "aws:ec2/instance:instance": 30.37,
    "aws:lambda/function:function": 5.0,
    "aws:ecs/cluster:cluster": 0.0,
    "aws:ecs/service:service": 36.0,
    "aws:ecs/taskdefinition:taskdefinition": 0.0,
    "aws:eks/cluster:cluster": 73.0,
    "aws:eks/nodegroup:nodegroup": 60.74,
    "aws:autoscaling/group:group": 60.74,
    "aws:apprunner/service:service": 25.0,
    # AWS data
    "aws:rds/instance:instance": 29.2,
    "aws:rds/cluster:cluster": 87.6,
    "aws:dynamodb/table:table": 5.0,
    "aws:elasticache/cluster:cluster": 24.82,
    "aws:elasticache/replicationgroup:replicationgroup": 49.64,
    "aws:s3/bucket:bucket": 2.3,
    "aws:s3/bucketv2:bucketv2": 2.3,
    "aws:efs/filesystem:filesystem": 3.0,
    "aws:opensearch/domain:domain": 52.56,
    # AWS messaging / edge
    "aws:sqs/queue:queue": 0.4,
    "aws:sns/topic:topic": 0.5,
    "aws:kinesis/stream:stream": 10.95,
    "aws:apigateway/restapi:restapi": 3.5,
    "aws:apigatewayv2/api:api": 1.0,
    "aws:cloudfront/distribution:distribution": 8.5,
    "aws:lb/loadbalancer:loadbalancer": 16.43,
    "aws:alb/loadbalancer:loadbalancer": 16.43,
    "aws:ec2/natgateway:natgateway": 32.85,
    "aws:ec2/eip:eip": 3.65,
    "aws:route53/zone:zone": 0.5,
    "aws:secretsmanager/secret:secret": 0.4,
    "aws:kms/key:key": 1.0,
    "aws:cloudwatch/loggroup:loggroup": 0.5,
    "aws:ecr/repository:repository": 1.0,
    # AWS free building blocks
    "aws:ec2/vpc:vpc": 0.0,
    "aws:ec2/subnet:subnet": 0.0,
    "aws:ec2/securitygroup:securitygroup": 0.0,
    "aws:ec2/internetgateway:internetgateway": 0.0,
    "aws:ec2/routetable:routetable": 0.0,
    "aws:ec2/routetableassociation:routetableassociation": 0.0,
    "aws:ec2/route:route": 0.0,
    "aws:iam/role:role": 0.0,
    "aws:iam/policy:policy": 0.0,
    "aws:iam/rolepolicyattachment:rolepolicyattachment": 0.0,
    "aws:rds/subnetgroup:subnetgroup": 0.0,
    "aws:lb/targetgroup:targetgroup": 0.0,
    "aws:lb/listener:listener": 0.0,
    # GCP
    "gcp:compute/instance:instance": 24.27,
    "gcp:compute/network:network": 0.0,
    "gcp:compute/subnetwork:subnetwork": 0.0,
    "gcp:compute/firewall:firewall": 0.0,
    "gcp:sql/databaseinstance:databaseinstance": 25.0,
    "gcp:storage/bucket:bucket": 2.0,
    "gcp:cloudrun/service:service": 15.0,
    "gcp:cloudrunv2/service:service": 15.0,
    "gcp:cloudfunctions/function:function": 5.0,
    "gcp:container/cluster:cluster": 73.0,
    "gcp:container/nodepool:nodepool": 48.54,
    "gcp:pubsub/topic:topic": 1.0,
    "gcp:pubsub/subscription:subscription": 0.0,
    "gcp:redis/instance:instance": 35.77,
    "gcp:serviceaccount/account:account": 0.0,
    # Azure
    "azure:compute/virtualmachine:virtualmachine": 30.37,
    "azure:storage/account:account": 2.1,
    "azure:appservice/plan:plan": 13.14,
    "azure:network/virtualnetwork:virtualnetwork": 0.0,
    "azure:core/resourcegroup:resourcegroup": 0.0,
}


def estimate_monthly_cost(resource_type: str) -> Optional[float]:
    """Monthly estimate for one resource, or None when the type isn't priced."""
    return MONTHLY_COST.get(resource_type.lower())


def total_estimated_cost(costs: Iterable[Optional[float]]) -> float:
    """Sum of known costs; unknown (None) entries are left out, not counted as free."""
    return round(sum(c for c in costs if c is not None), 2)


def annotate_nodes(nodes: Iterable[GraphNode]) -> List[GraphNode]:
    return [
        n.model_copy(update={"estimated_cost": estimate_monthly_cost(n.resource_type)})
        for n in nodes
    ]
