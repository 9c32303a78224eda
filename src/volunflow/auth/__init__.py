"""Authentication, session lifecycle and tenant authorization.

Layers, leaf-first:
1. store.CredentialStore  → user rows + the single refresh-token hash
2. tokens.TokenService    → mint / verify / rotate / revoke JWT pairs
3. cookies.SessionCookies → tokens ↔ HttpOnly cookies
4. context                → per-request identity from the access cookie
5. guard                  → role + ownership checks for tenant mutations

Role and tenant are never embedded in a token. They are re-read from the
database on every request so a role change takes effect immediately.
"""
