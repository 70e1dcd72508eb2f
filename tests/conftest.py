import pytest

BOOKSTORE_SOURCE = """import ballerina/http;
import ballerina/log as l;

// import commented/out;
configurable int port = 9090;
configurable string greeting = "hi; there";

http:Client backend = check new ("http://localhost:8080");
listener http:Listener ep = new (port);
final int MAX_SIZE = 100;
const string VERSION = "1.0";
const LIMIT = 5;

public type Book record {|
    string title;
    map<string> tags = {};
|};

type Id string;

public isolated function lookup(string id, map<int> cache) returns Book|error {
    if id == "" {
        return error("empty");
    }
    int local = 1;
    return {title: id};
}

function log() {
    l:printInfo("{not a block");
}

function ext() returns int = external;

service /books on ep {
    function helper() returns int {
        return 1;
    }

    resource function get [string isbn]/author(http:Request req) returns json {
        return {};
    }

    isolated resource function post .(@http:Payload Book book) {
        foreach var x in [1, 2] {
            if x > 1 {
                log();
            }
        }
    }
}

public isolated client class Store {
    private int count = 0;

    function init() {
        self.count = 0;
    }
}
"""

ADD_SOURCE = "import ballerina/http;\n\nfunction add(int a, int b) returns int {\n  return a + b;\n}\n"

SERVICE_SOURCE = (
    "service /books on new Listener(8080) { "
    "resource function get items() returns int { return 1; } }"
)


@pytest.fixture
def bookstore_source() -> str:
    return BOOKSTORE_SOURCE


@pytest.fixture
def add_source() -> str:
    return ADD_SOURCE


@pytest.fixture
def service_source() -> str:
    return SERVICE_SOURCE
