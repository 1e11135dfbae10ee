from pathlib import Path

VERSION = "0.3.0"

# dirs paths
ETC_DIR = Path("/etc/ubitix")
STATE_DIR = Path("/var/lib/ubitix")

# files paths
CONFIG_FILE = ETC_DIR / "gateway.yaml"
STATE_FILE = STATE_DIR / "gateway.yaml"

# executables
IP6TABLES_EXECUTABLE = "ip6tables"

# size of the queue between the filesystem observer thread and the gateway
WATCH_QUEUE_SIZE = 32

# width of every translated network
SUBNET_PREFIX_LEN = 64

GITHUB_API_URL = "https://api.github.com"
GITHUB_API_VERSION = "2022-11-28"
WORKFLOW_DEFAULT_REF = "main"

# seconds, the whole workflow dispatch request including the response
WORKFLOW_DISPATCH_TIMEOUT = 30.0
