# Attribute types (RFC 2865 / RFC 2866 / RFC 3579)
USER_NAME              = 1
USER_PASSWORD          = 2
NAS_IP_ADDRESS         = 4
NAS_PORT               = 5
REPLY_MESSAGE          = 18
STATE                  = 24
CLASS                  = 25
SESSION_TIMEOUT        = 27
CALLED_STATION_ID      = 30
CALLING_STATION_ID     = 31
NAS_IDENTIFIER         = 32
ACCT_STATUS_TYPE       = 40
ACCT_SESSION_ID        = 44
MESSAGE_AUTHENTICATOR  = 80

# Acct-Status-Type values
ACCT_STATUS_START      = 1
ACCT_STATUS_STOP       = 2
ACCT_STATUS_INTERIM    = 3
