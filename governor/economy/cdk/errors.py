class CdkError(Exception):
    code = "E_CDK_UNEXPECTED"
    message = "Redemption failed, please try again later"

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class CdkQuotaExceededError(CdkError):
    code = "E_CDK_QUOTA_EXCEEDED"
    message = "Daily redemption limit reached, try again tomorrow"


class CdkInvalidFormatError(CdkError):
    code = "E_CDK_INVALID_FORMAT"
    message = "Invalid code format"


class CdkNotFoundError(CdkError):
    code = "E_CDK_NOT_FOUND"
    message = "Code does not exist"


class CdkAlreadyRedeemedError(CdkError):
    code = "E_CDK_ALREADY_REDEEMED"
    message = "Code has already been redeemed"


class CdkExpiredError(CdkError):
    code = "E_CDK_EXPIRED"
    message = "Code has expired"


class CdkPackageUnavailableError(CdkError):
    code = "E_CDK_PACKAGE_UNAVAILABLE"
    message = "The package for this code is no longer available"


class CdkUserNotFoundError(CdkError):
    code = "E_CDK_USER_NOT_FOUND"
    message = "User not found"


class CdkIssueError(Exception):
    pass


class CdkIssuePackageError(CdkIssueError):
    pass


class CdkIssueCollisionError(CdkIssueError):
    pass


class CdkIssueNotFoundError(CdkIssueError):
    pass


class CdkIssueRedeemedError(CdkIssueError):
    pass
