# IBM Cloud landing zone catalog for ZoneStack
# Provider: IBM Cloud (ibm provider)
# Architecture: VPC > VPN gateway > connections, COS, Transit Gateway, PowerVS workspace

CATALOG_NAME = "IBM Cloud"
PROVIDER = "ibm"

# Regions accepted for VPC, COS and Transit Gateway placement
REGIONS = [
    "au-syd",
    "br-sao",
    "ca-tor",
    "eu-de",
    "eu-es",
    "eu-gb",
    "jp-osa",
    "jp-tok",
    "us-east",
    "us-south",
]

# PowerVS workspace zones
WORKSPACE_ZONES = [
    "che01",
    "dal10",
    "dal12",
    "eu-de-1",
    "eu-de-2",
    "lon04",
    "lon06",
    "mad02",
    "mad04",
    "osa21",
    "sao01",
    "syd04",
    "syd05",
    "tok04",
    "tor01",
    "us-east",
    "us-south",
    "wdc06",
    "wdc07",
]

STORAGE_CLASSES = ["standard", "vault", "cold", "smart", "onerate_active"]

VPN_GATEWAY_MODES = ["route", "policy"]

# IKE / IPsec policy enumerations
IKE_AUTHENTICATION_ALGORITHMS = ["sha256", "sha384", "sha512"]
IKE_ENCRYPTION_ALGORITHMS = ["aes128", "aes192", "aes256"]
IKE_DH_GROUPS = [14, 15, 16, 17, 18, 19, 20, 21, 22, 23, 24, 31]
IKE_VERSIONS = [1, 2]
IPSEC_AUTHENTICATION_ALGORITHMS = ["sha256", "sha384", "sha512", "disabled"]
IPSEC_ENCRYPTION_ALGORITHMS = [
    "aes128",
    "aes192",
    "aes256",
    "aes128gcm16",
    "aes192gcm16",
    "aes256gcm16",
]
IPSEC_PFS_GROUPS = [
    "disabled",
    "group_2",
    "group_5",
    "group_14",
    "group_15",
    "group_16",
    "group_17",
    "group_18",
    "group_19",
    "group_20",
    "group_21",
    "group_22",
    "group_23",
    "group_24",
    "group_31",
]

# Key lifetime bounds in seconds, shared by IKE and IPsec policies
KEY_LIFETIME_MIN = 300
KEY_LIFETIME_MAX = 86400

PREFIX_MAX_LENGTH = 20
PRESHARED_KEY_MIN_LENGTH = 32
MAX_WORKSPACE_SUBNETS = 3

# Default nested records
DEFAULT_IKE_POLICY = {
    "authentication_algorithm": "sha256",
    "encryption_algorithm": "aes256",
    "dh_group": 14,
    "ike_version": 2,
    "key_lifetime": 28800,
}

DEFAULT_IPSEC_POLICY = {
    "authentication_algorithm": "sha256",
    "encryption_algorithm": "aes256",
    "pfs": "group_14",
    "key_lifetime": 3600,
}

DEFAULT_WORKSPACE_SUBNETS = [
    {"name": "mgmt", "cidr": "10.51.0.0/24", "dns": ["127.0.0.1"]},
]

# Display name suffixes, joined to the global prefix with a hyphen
NAME_SUFFIXES = {
    "network": "vpc",
    "vpn": "vpn",
    "storage": "cos",
    "storage_bucket": "flowlogs-bucket",
    "transit_gateway": "tgw",
    "workspace": "power-workspace",
    "workspace_ssh_key": "ssh-key",
}

# Externally maintained provisioning modules, one per node kind
MODULE_SOURCES = {
    "network": {
        "source": "terraform-ibm-modules/landing-zone-vpc/ibm",
        "version": "7.19.0",
    },
    "vpn": {
        "source": "terraform-ibm-modules/site-to-site-vpn/ibm",
        "version": "1.2.0",
    },
    "storage": {
        "source": "terraform-ibm-modules/cos/ibm",
        "version": "8.11.0",
    },
    "transit_gateway": {
        "source": "terraform-ibm-modules/transit-gateway/ibm",
        "version": "2.4.0",
    },
    "workspace": {
        "source": "terraform-ibm-modules/powervs-workspace/ibm",
        "version": "1.15.0",
    },
}

# Attributes each node kind materializes after provisioning
NODE_OUTPUTS = {
    "network": [
        "vpc_id",
        "vpc_crn",
        "subnet_id",
        "vpn_gateway_id",
        "vpn_gateway_public_ips",
    ],
    "vpn": ["vpn_connection_ids"],
    "storage": ["cos_instance_id", "cos_instance_crn", "bucket_name", "bucket_crn"],
    "transit_gateway": ["transit_gateway_id", "transit_gateway_crn"],
    "workspace": [
        "workspace_id",
        "workspace_guid",
        "workspace_crn",
        "ssh_key_name",
        "subnet_1_id",
        "subnet_2_id",
        "subnet_3_id",
    ],
}
