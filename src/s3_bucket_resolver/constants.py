"""Constants for the S3 bucket resolver."""

# Server-side encryption algorithms
SSE_ALGORITHM_KMS = "aws:kms"
SSE_ALGORITHM_DEFAULT = "AES256"

# Bucket defaults
DEFAULT_ACL = "private"
DEFAULT_REQUEST_PAYER = "BucketOwner"
DEFAULT_PARTITION = "aws"
DEFAULT_REGION = "us-east-1"

# Cross-account grant defaults
DEFAULT_CROSS_ACCOUNT_BUCKET_ACTIONS = ("s3:ListBucket",)
DEFAULT_CROSS_ACCOUNT_OBJECT_ACTIONS = ("s3:GetObject",)
DEFAULT_CROSS_ACCOUNT_OBJECT_ACTIONS_WITH_FORCED_ACL = ("s3:PutObject", "s3:PutObjectAcl")
DEFAULT_CROSS_ACCOUNT_FORCED_ACLS = ("bucket-owner-full-control",)

# Policy document
POLICY_VERSION = "2012-10-17"
POLICY_ACL_CONDITION_KEY = "s3:x-amz-acl"
SID_BUCKET_ACTIONS = "AllowCrossAccountBucketActions"
SID_OBJECT_ACTIONS = "AllowCrossAccountObjectActions"
SID_OBJECT_ACTIONS_WITH_FORCED_ACL = "AllowCrossAccountObjectActionsWithForcedAcl"

# Provider name generation
BUCKET_NAME_MAX_LENGTH = 63
GENERATED_NAME_PLACEHOLDER = "<generated>"

# Resolution operations (metric and span labels)
OP_RESOLVE = "resolve"
OP_RESOLVE_BUCKET = "resolve_bucket"
OP_RESOLVE_LIFECYCLE = "resolve_lifecycle_rules"
OP_RESOLVE_POLICY = "resolve_policy"

# Log event reasons
REASON_RESOLVED = "Resolved"
REASON_SKIPPED = "CreateDisabled"
REASON_INVALID = "ConfigurationInvalid"
REASON_FAILED = "ResolutionFailed"
REASON_APPLIED = "BucketApplied"
REASON_DESTROYED = "BucketDestroyed"
