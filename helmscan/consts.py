# Scanner runtime
SNYK_CLI_DOCKER_IMAGE = "snyk/snyk:docker"
SNYK_TOKEN_ENV_VAR = "SNYK_TOKEN"

# Host container-control socket, bound into every scanner run
DOCKER_SOCKET_PATH = "/var/run/docker.sock"
DOCKER_SOCKET_BIND = f"{DOCKER_SOCKET_PATH}:{DOCKER_SOCKET_PATH}"

# External tools
HELM_EXECUTABLE = "helm"
DOCKER_EXECUTABLE = "docker"

# Chart descriptor
CHART_DESCRIPTOR_FILENAME = "Chart.yaml"

# Defaults
DEFAULT_CONCURRENCY = 1  # Sequential scanning
DEFAULT_TIMEOUT = None  # No timeout per external call
REPORT_INDENT = 2

# Snyk CLI exit codes
SNYK_EXIT_NO_ISSUES = 0
SNYK_EXIT_ISSUES_FOUND = 1
SNYK_EXIT_ERROR = 2

# Process exit codes
EXIT_OK = 0
EXIT_FATAL = 1
EXIT_MISSING_TOKEN = 2
EXIT_INTERRUPTED = 130
