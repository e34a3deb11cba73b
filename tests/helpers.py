"""
Common testing data for WebFinger tests.

Sample YAML account configurations shared by the store, resolution and handler tests.
"""

SAMPLE_CONFIG = """\
default:
  user: alice@example.com

alice@example.com:
  profile: https://example.com/alice
  avatar: https://example.com/alice.png
  openid: https://idp.example.com/issuer
  tailscale: https://login.tailscale.com/alice
  github: https://github.com/alice
  mastodon: https://mastodon.social/@alice
  pronouns: she/her

bob@example.com:
  profile: https://example.com/bob
  avatar: ""
  openid: ""
"""

ALTERNATE_CONFIG = """\
carol@example.com:
  profile: https://example.com/carol
"""
