"""
Default driver table — the AWS EC2 Windows drivers.

Used when no drivers.yml is found. Instance-type lists follow the AWS
documentation (ENA support matrix, Nitro instance list) and must be
lowercase.
"""

from __future__ import annotations

from driver_updater.core.models.driver import DriverSpec, EligibilityRule

_VERSION_PATTERN = r"([\d]\.[\d]\.[\d])"

# NVMe only exists on Nitro-based instances
NVME_PREFIXES = (
    "c5", "c5a", "c5ad", "c5d", "c5n", "c6a", "c6i", "c6id", "d3", "d3en",
    "g4", "g4ad", "g5", "i3en", "i4i", "m5", "m5a", "m5ad", "m5d", "m5dn",
    "m5n", "m5zn", "m6a", "m6i", "m6id", "r5", "r5a", "r5ad", "r5b", "r5d",
    "r5dn", "r5n", "r6i", "r6id", "t3", "t3a", "x2idn", "x2iedn", "x2iezn",
    "z1d",
)
NVME_CLASSES = (
    "p3dn.24xlarge", "u-12tb1.112xlarge", "u-3tb1.56xlarge",
    "u-6tb1.112xlarge", "u-6tb1.56xlarge", "u-9tb1.112xlarge",
)

# ENA is unsupported on these
ENA_DENY_PREFIXES = ("c4", "d2", "t2")
ENA_DENY_CLASSES = ("m4.large", "m4.xlarge", "m4.2xlarge", "m4.4xlarge", "m4.10xlarge")


DEFAULT_DRIVERS: list[DriverSpec] = [
    DriverSpec(
        id="nvme",
        name="AWS NVMe",
        download_url="https://s3.amazonaws.com/ec2-windows-drivers-downloads/NVMe/Latest/AWSNVMe.zip",
        probe_command=(
            "$driver_ver = (Get-WmiObject Win32_PnPSignedDriver | "
            "? {$_.Description -match 'AWS NVMe Elastic Block Storage Adapter'}).DriverVersion; "
            "if ($driver_ver) {Write-Host $($driver_ver)} else {Write-Host '1.0.0'}"
        ),
        install_command=r"powershell.exe -NoProfile -File AWSNVMe\install.ps1 -NoReboot",
        version_url="https://docs.aws.amazon.com/AWSEC2/latest/WindowsGuide/aws-nvme-drivers.html",
        version_pattern=_VERSION_PATTERN,
        eligibility=EligibilityRule(policy="allow", classes=NVME_CLASSES, prefixes=NVME_PREFIXES),
    ),
    DriverSpec(
        id="pv",
        name="AWS PV",
        download_url="https://s3.amazonaws.com/ec2-windows-drivers-downloads/AWSPV/Latest/AWSPVDriver.zip",
        probe_command="(Get-WmiObject -Class win32_Product | ? {$_.name -match 'AWS PV Drivers'}).Version",
        install_command=r"powershell.exe -NoProfile -File AWSPVDriver\install.ps1 -Quiet -NoReboot",
        version_url="https://docs.aws.amazon.com/AWSEC2/latest/WindowsGuide/xen-drivers-overview.html",
        version_pattern=_VERSION_PATTERN,
    ),
    DriverSpec(
        id="ena",
        name="Amazon ENA",
        download_url="https://s3.amazonaws.com/ec2-windows-drivers-downloads/ENA/Latest/AwsEnaNetworkDriver.zip",
        probe_command=(
            "(Get-WmiObject Win32_PnPSignedDriver | "
            "? {$_.FriendlyName -match 'Amazon Elastic Network Adapter'}).DriverVersion"
        ),
        install_command=r"powershell.exe -NoProfile -File AwsEnaNetworkDriver\install.ps1",
        version_url="https://docs.aws.amazon.com/AWSEC2/latest/WindowsGuide/enhanced-networking-ena.html",
        version_pattern=_VERSION_PATTERN,
        eligibility=EligibilityRule(policy="deny", classes=ENA_DENY_CLASSES, prefixes=ENA_DENY_PREFIXES),
    ),
]
