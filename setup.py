# -*- coding: utf-8 -*-
from setuptools import setup

package_dir = \
{'': 'python'}

packages = \
['ubitix',
 'ubitix.config',
 'ubitix.gateway',
 'ubitix.utils',
 'ubitix.utils.compat',
 'ubitix.utils.modeling']

install_requires = \
['aiohttp', 'pyyaml', 'watchdog']

extras_require = \
{'test': ['pytest', 'pytest-asyncio']}

entry_points = \
{'console_scripts': ['ubitix = ubitix.main:main']}

setup_kwargs = {
    'name': 'ubitix',
    'version': '0.3.0',
    'description': 'Keeps private IPv6 networks reachable under a dynamically delegated IPv6 prefix using NPTv6',
    'long_description': "# ubitix\n\nWatches the log of a DHCPv6-PD client for newly delegated prefixes, maps the highest /64 subnets of the prefix onto a list of private /64 networks, installs the matching NPTv6 (`NETMAP`) rules with `ip6tables`, stores the mapping and dispatches a GitHub Actions workflow so the rest of the infrastructure can follow the new prefix.\n\n```\n$ ubitix gateway -c /etc/ubitix/gateway.yaml\n$ ubitix action --mapping '{\"2001:db8:1234:f::/64\": \"fd00:a::/64\"}' ./zones\n```\n",
    'long_description_content_type': 'text/markdown',
    'package_dir': package_dir,
    'packages': packages,
    'install_requires': install_requires,
    'extras_require': extras_require,
    'entry_points': entry_points,
    'python_requires': '>=3.9,<4.0',
}

setup(**setup_kwargs)
