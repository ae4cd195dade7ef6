"""Constants for the Global Accelerator Operator."""

# API Group
API_GROUP = "globalaccelerator.cloud37.dev"
API_GROUP_VERSION = f"{API_GROUP}/v1alpha1"

# Resource Kinds
KIND_PROVIDER = "Provider"
KIND_ACCELERATOR = "Accelerator"

# Finalizers
FINALIZER = f"{API_GROUP}/finalizer"

# Field Manager
FIELD_MANAGER = "global-accelerator-operator"
CONTROLLER_NAME = "global-accelerator-operator"

# Global Accelerator API
# The control plane is only served from us-west-2.
DEFAULT_API_REGION = "us-west-2"
ACCELERATOR_STATUS_IN_PROGRESS = "IN_PROGRESS"
ACCELERATOR_STATUS_DEPLOYED = "DEPLOYED"
IP_ADDRESS_TYPE_IPV4 = "IPV4"
IP_ADDRESS_TYPES = (IP_ADDRESS_TYPE_IPV4,)
ERR_CODE_ACCELERATOR_NOT_FOUND = "AcceleratorNotFoundException"

# Timeouts (seconds)
DEFAULT_CREATE_TIMEOUT_SECONDS = 300.0
DEFAULT_UPDATE_TIMEOUT_SECONDS = 300.0

# Deletion policies
DELETION_POLICY_DELETE = "Delete"
DELETION_POLICY_RETAIN = "Retain"

# Condition Types
COND_READY = "Ready"
COND_PROVIDER_NOT_READY = "ProviderNotReady"
COND_AUTH_VALID = "AuthValid"
COND_ENDPOINT_REACHABLE = "EndpointReachable"
COND_CREATION_FAILED = "CreationFailed"
COND_UPDATE_FAILED = "UpdateFailed"
COND_PROVISIONING = "Provisioning"

# Event Reasons
EVENT_REASON_RECONCILE_STARTED = "ReconcileStarted"
EVENT_REASON_RECONCILE_FAILED = "ReconcileFailed"
EVENT_REASON_VALIDATE_SUCCEEDED = "ValidateSucceeded"
EVENT_REASON_VALIDATE_FAILED = "ValidateFailed"
EVENT_REASON_ACCELERATOR_CREATED = "AcceleratorCreated"
EVENT_REASON_ACCELERATOR_UPDATED = "AcceleratorUpdated"
EVENT_REASON_ACCELERATOR_DELETED = "AcceleratorDeleted"
EVENT_REASON_ACCELERATOR_GONE = "AcceleratorGone"
EVENT_REASON_PROVISIONING_TIMEOUT = "ProvisioningTimeout"
